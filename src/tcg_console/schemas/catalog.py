"""Pydantic v2 schemas for catalog reset/reload results."""

import enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MutationStatus(enum.StrEnum):
    """Overall result of a reset or reload that reached the backend."""

    SUCCESS = "success"
    SUCCESS_WITH_WARNINGS = "success_with_warnings"


class _CountsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")

    error_count: int = Field(default=0, ge=0, description="Items the external source failed to deliver")

    @property
    def has_warnings(self) -> bool:
        return self.error_count > 0

    @property
    def status(self) -> MutationStatus:
        # Partial failure is still a completed operation.
        if self.has_warnings:
            return MutationStatus.SUCCESS_WITH_WARNINGS
        return MutationStatus.SUCCESS


class ResetOutcome(_CountsModel):
    """Response body of ``POST /catalog/sets/{id}/reset``."""

    deleted_count: int = Field(default=0, ge=0, description="Existing cards removed")
    reimported_count: int = Field(default=0, ge=0, description="Cards re-created from the external source")


class ReloadOutcome(_CountsModel):
    """Response body of ``POST /catalog/sets/{id}/reload``."""

    added_count: int = Field(default=0, ge=0, description="Missing cards added")
    skipped_existing_count: int = Field(default=0, ge=0, description="Cards already present and left untouched")
