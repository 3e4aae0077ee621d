"""Catalog screen controller.

Drives :class:`CascadeGuard` and turns its outcomes into one-line
operator notices.  Partial failures of a reset or reload are reported
as warnings, never as errors.
"""

import enum
from dataclasses import dataclass

from loguru import logger

from tcg_console.lib.catalog import (
    CascadeGuard,
    CatalogMutationError,
    CatalogNode,
    Confirmer,
    DeleteResult,
    DeleteStatus,
    NodeType,
)
from tcg_console.lib.transport import ApiClient
from tcg_console.schemas.catalog import ReloadOutcome, ResetOutcome


class NoticeLevel(enum.StrEnum):
    """Severity of an operator notice."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notice:
    """A message for the operator."""

    level: NoticeLevel
    text: str


def delete_notice(result: DeleteResult) -> Notice:
    if result.status is DeleteStatus.DELETED:
        return Notice(NoticeLevel.SUCCESS, result.message or f"Deleted {result.node.label}")
    if result.status is DeleteStatus.CANCELLED:
        return Notice(NoticeLevel.INFO, f"Delete of {result.node.label} cancelled")
    return Notice(NoticeLevel.ERROR, result.message or f"Could not delete {result.node.label}")


def reset_notice(node: CatalogNode, outcome: ResetOutcome) -> Notice:
    text = (
        f"Reset {node.label}: {outcome.deleted_count} deleted, "
        f"{outcome.reimported_count} reimported"
    )
    if outcome.has_warnings:
        return Notice(NoticeLevel.WARNING, f"{text}, {outcome.error_count} could not be imported")
    return Notice(NoticeLevel.SUCCESS, text)


def reload_notice(node: CatalogNode, outcome: ReloadOutcome) -> Notice:
    text = (
        f"Reloaded {node.label}: {outcome.added_count} added, "
        f"{outcome.skipped_existing_count} already present"
    )
    if outcome.has_warnings:
        return Notice(NoticeLevel.WARNING, f"{text}, {outcome.error_count} could not be imported")
    return Notice(NoticeLevel.SUCCESS, text)


class CatalogConsole:
    """State-free controller for the catalog screen.

    Args:
        client: Backend API client.
        confirm: Asks the operator a yes/no question.
    """

    def __init__(self, client: ApiClient, confirm: Confirmer) -> None:
        self._guard = CascadeGuard(client, confirm)

    @property
    def guard(self) -> CascadeGuard:
        return self._guard

    async def delete_node(self, node_type: NodeType, node_id: int | str, name: str | None = None) -> Notice:
        node = CatalogNode(node_type, node_id, name)
        result = await self._guard.delete_with_confirmation(node)
        notice = delete_notice(result)
        logger.info("Delete {}: {}", node.label, result.status.value)
        return notice

    async def reset_set(self, set_id: int | str, external_source_ref: str, name: str | None = None) -> Notice:
        node = CatalogNode(NodeType.SET, set_id, name)
        try:
            outcome = await self._guard.reset_catalog_node(node, external_source_ref)
        except CatalogMutationError as exc:
            return Notice(NoticeLevel.ERROR, f"Reset of {node.label} failed: {exc.message}")
        if outcome is None:
            return Notice(NoticeLevel.INFO, f"Reset of {node.label} cancelled")
        return reset_notice(node, outcome)

    async def reload_set(self, set_id: int | str, name: str | None = None) -> Notice:
        node = CatalogNode(NodeType.SET, set_id, name)
        try:
            outcome = await self._guard.reload_catalog_node(node)
        except CatalogMutationError as exc:
            return Notice(NoticeLevel.ERROR, f"Reload of {node.label} failed: {exc.message}")
        return reload_notice(node, outcome)
