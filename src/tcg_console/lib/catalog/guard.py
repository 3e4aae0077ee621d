"""Confirmation-gated destructive mutations on the catalog hierarchy.

Deletes ask once up front, then go through a disclose -> confirm -> force
protocol: the first attempt never forces, and a forced retry is only
issued after the operator approved the exact counts the backend
disclosed.  The counts are an estimate at disclosure time; the backend
re-validates the forced call.

A full reset of a set is unconditionally destructive and always asks for
confirmation.  A reload only adds missing cards and is not gated.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from loguru import logger
from pydantic import ValidationError

from tcg_console.lib.catalog.disclosure import normalize_delete_response
from tcg_console.lib.catalog.types import (
    CascadeImpact,
    CatalogNode,
    Deleted,
    DeleteFailed,
    DeleteOutcome,
    ImpactDisclosed,
    NodeType,
)
from tcg_console.lib.transport import ApiClient, ApiError, response_body
from tcg_console.schemas.catalog import ReloadOutcome, ResetOutcome

Confirmer = Callable[[str], bool]

_OutcomeT = TypeVar("_OutcomeT", ResetOutcome, ReloadOutcome)


class CatalogMutationError(ApiError):
    """Raised when a reset or reload request fails."""


class DeleteStatus(enum.StrEnum):
    """Final result of a confirmation-gated delete."""

    DELETED = "deleted"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class DeleteResult:
    """What happened to a node after the full delete protocol ran."""

    node: CatalogNode
    status: DeleteStatus
    impact: CascadeImpact | None = None
    message: str = ""


def describe_impact(node: CatalogNode, impact: CascadeImpact) -> str:
    """Build the confirmation prompt for a disclosed cascade."""
    lines = []
    if impact.explanation:
        lines.append(impact.explanation)
        lines.append("")
    if node.node_type is NodeType.EXPANSION:
        lines.append(
            f"Deleting {node.label} will also delete {impact.affected_child_count} set(s) "
            f"and {impact.affected_leaf_count} card(s)."
        )
    else:
        lines.append(f"Deleting {node.label} will also delete {impact.affected_leaf_count} card(s).")
    lines.append("Counts reflect the catalog when it was checked and may have changed since.")
    lines.append("This cannot be undone. Proceed?")
    return "\n".join(lines)


def _require_set(node: CatalogNode, operation: str) -> None:
    if node.node_type is not NodeType.SET:
        msg = f"{operation} is only supported for sets, got {node.label}"
        raise ValueError(msg)


class CascadeGuard:
    """Runs destructive catalog mutations behind operator confirmation.

    Args:
        client: Backend API client.
        confirm: Asks the operator a yes/no question and returns the answer.
    """

    def __init__(self, client: ApiClient, confirm: Confirmer) -> None:
        self._client = client
        self._confirm = confirm

    async def attempt_delete(self, node: CatalogNode, force: bool = False) -> DeleteOutcome:
        """Issue one delete request and classify the response.

        Never retries.  A disclosed impact is returned to the caller, who
        decides whether to call again with ``force=True``.
        """
        try:
            response = await self._client.request("DELETE", node.resource_path, params={"force": force})
        except ApiError as exc:
            logger.error("Delete of {} failed: {}", node.label, exc.message)
            return DeleteFailed(exc.message, status_code=exc.status_code)

        outcome = normalize_delete_response(response.status_code, response_body(response))
        if isinstance(outcome, ImpactDisclosed):
            logger.info(
                "Delete of {} needs confirmation: {} child(ren), {} leaf item(s)",
                node.label,
                outcome.impact.affected_child_count,
                outcome.impact.affected_leaf_count,
            )
        elif isinstance(outcome, Deleted):
            logger.info("Deleted {} (force={})", node.label, force)
        else:
            logger.warning("Delete of {} failed: HTTP {} {}", node.label, outcome.status_code, outcome.reason)
        return outcome

    async def delete_with_confirmation(self, node: CatalogNode) -> DeleteResult:
        """Delete ``node`` after the operator confirms, asking again before any cascade.

        A ``NotFound`` on the forced retry means the node is already gone
        and is reported as deleted.
        """
        if not self._confirm(f"Delete {node.label}?"):
            logger.info("Operator declined delete of {}", node.label)
            return DeleteResult(node, DeleteStatus.CANCELLED, message="Delete cancelled")

        outcome = await self.attempt_delete(node)
        if isinstance(outcome, Deleted):
            return DeleteResult(node, DeleteStatus.DELETED, message=f"Deleted {node.label}")
        if isinstance(outcome, DeleteFailed):
            return DeleteResult(node, DeleteStatus.FAILED, message=outcome.reason)

        impact = outcome.impact
        if not self._confirm(describe_impact(node, impact)):
            logger.info("Operator declined cascading delete of {}", node.label)
            return DeleteResult(node, DeleteStatus.CANCELLED, impact=impact, message="Delete cancelled")

        forced = await self.attempt_delete(node, force=True)
        if isinstance(forced, Deleted):
            return DeleteResult(node, DeleteStatus.DELETED, impact=impact, message=f"Deleted {node.label}")
        if isinstance(forced, DeleteFailed) and forced.not_found:
            logger.info("{} was already gone on forced delete", node.label)
            return DeleteResult(node, DeleteStatus.DELETED, impact=impact, message=f"Deleted {node.label}")
        if isinstance(forced, ImpactDisclosed):
            return DeleteResult(
                node,
                DeleteStatus.FAILED,
                impact=forced.impact,
                message="The server still requires confirmation after a forced delete",
            )
        return DeleteResult(node, DeleteStatus.FAILED, impact=impact, message=forced.reason)

    async def reset_catalog_node(self, node: CatalogNode, external_source_ref: str) -> ResetOutcome | None:
        """Delete every card of a set and re-import it from an external source.

        Asks twice: once for the intent, once for the irreversible delete.

        Args:
            node: The set to rebuild.
            external_source_ref: Source-specific code of the set in the external catalog.

        Returns:
            The reset counts, or ``None`` if the operator declined.

        Raises:
            ValueError: If ``node`` is not a set or the source reference is empty.
            CatalogMutationError: If the request fails.
        """
        _require_set(node, "Reset")
        source_ref = external_source_ref.strip()
        if not source_ref:
            msg = "external_source_ref must not be empty"
            raise ValueError(msg)

        if not self._confirm(f"Reset {node.label} from external source {source_ref}?"):
            logger.info("Operator declined reset of {}", node.label)
            return None
        if not self._confirm(
            f"Every card of {node.label} will be deleted before re-importing. This cannot be undone. Proceed?"
        ):
            logger.info("Operator declined reset of {} at final confirmation", node.label)
            return None

        body = await self._post_mutation(f"{node.resource_path}/reset", node, json={"externalSourceRef": source_ref})
        outcome = self._parse(ResetOutcome, body, node)
        logger.info(
            "Reset {}: {} deleted, {} reimported, {} error(s)",
            node.label,
            outcome.deleted_count,
            outcome.reimported_count,
            outcome.error_count,
        )
        return outcome

    async def reload_catalog_node(self, node: CatalogNode) -> ReloadOutcome:
        """Add cards of a set that are missing locally; existing cards are skipped.

        Raises:
            ValueError: If ``node`` is not a set.
            CatalogMutationError: If the request fails.
        """
        _require_set(node, "Reload")
        body = await self._post_mutation(f"{node.resource_path}/reload", node)
        outcome = self._parse(ReloadOutcome, body, node)
        logger.info(
            "Reloaded {}: {} added, {} already present, {} error(s)",
            node.label,
            outcome.added_count,
            outcome.skipped_existing_count,
            outcome.error_count,
        )
        return outcome

    async def _post_mutation(self, path: str, node: CatalogNode, json: object = None) -> object:
        try:
            return await self._client.post_json(path, json=json)
        except ApiError as exc:
            logger.error("Mutation {} on {} failed: {}", path, node.label, exc.message)
            raise CatalogMutationError(exc.message, status_code=exc.status_code, payload=exc.payload) from exc

    @staticmethod
    def _parse(model: type[_OutcomeT], body: object, node: CatalogNode) -> _OutcomeT:
        try:
            return model.model_validate(body if body is not None else {})
        except ValidationError as exc:
            msg = f"Unexpected response for {node.label}: {exc.error_count()} invalid field(s)"
            raise CatalogMutationError(msg, payload=body) from exc
