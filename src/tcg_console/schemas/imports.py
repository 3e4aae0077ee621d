"""Pydantic v2 schemas for catalog import jobs.

The backend speaks camelCase JSON; fields are exposed in snake_case and
accept either spelling on input.
"""

import enum
from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class OperationKind(enum.StrEnum):
    """Catalog families the import backend knows how to ingest."""

    POKEMON = "POKEMON"
    MAGIC = "MAGIC"
    YUGIOH = "YUGIOH"
    ONE_PIECE = "ONE_PIECE"
    LORCANA = "LORCANA"


class ImportJobStatus(enum.StrEnum):
    """Lifecycle status of a background import job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportJobStatus.COMPLETED, ImportJobStatus.FAILED)


class ImportJob(BaseModel):
    """Snapshot of one asynchronous ingestion run as reported by the backend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "jobId", "job_id"), description="Backend job identifier")
    operation_kind: str = Field(default="", description="Catalog family being imported")
    status: ImportJobStatus = Field(default=ImportJobStatus.PENDING)
    processed_count: int = Field(default=0, ge=0)
    total_count: int = Field(default=0, ge=0, description="0 while the backend has not enumerated the work")
    percent_complete: int = Field(default=0, ge=0, le=100)
    status_message: str = Field(default="")
    started_at: datetime | None = Field(default=None)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        if v is None or (isinstance(v, str) and not v.strip()):
            msg = "job id must not be empty"
            raise ValueError(msg)
        return str(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("processed_count", "total_count", "percent_complete", mode="before")
    @classmethod
    def none_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("status_message", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def total_known(self) -> bool:
        return self.total_count > 0

    @classmethod
    def submitted(cls, job_id: str, operation_kind: str) -> "ImportJob":
        """Build the initial Pending snapshot for a freshly submitted job."""
        return cls(
            id=job_id,
            operation_kind=operation_kind,
            status=ImportJobStatus.PENDING,
            processed_count=0,
            total_count=0,
            percent_complete=0,
            started_at=datetime.now(UTC),
        )


class ImportSubmission(BaseModel):
    """Response body of ``POST /import/{operationKind}``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    job_id: str | None = Field(default=None, validation_alias=AliasChoices("jobId", "job_id", "id"))
    message: str | None = Field(default=None)

    @field_validator("job_id", mode="before")
    @classmethod
    def coerce_job_id(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None
