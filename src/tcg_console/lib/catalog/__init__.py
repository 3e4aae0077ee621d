"""Catalog mutation library: confirmation-gated deletes, resets and reloads.

Public API:
    - CascadeGuard: disclose -> confirm -> force deletes, gated reset, ungated reload
    - normalize_delete_response: map a raw delete response onto a DeleteOutcome
    - CatalogNode, NodeType: addressable catalog nodes
    - CascadeImpact, Deleted, ImpactDisclosed, DeleteFailed: delete outcomes
    - DeleteResult, DeleteStatus: result of the full confirmation flow
    - CatalogMutationError: reset/reload request failure
"""

from tcg_console.lib.catalog.disclosure import normalize_delete_response, parse_cascade_impact
from tcg_console.lib.catalog.guard import (
    CascadeGuard,
    CatalogMutationError,
    Confirmer,
    DeleteResult,
    DeleteStatus,
    describe_impact,
)
from tcg_console.lib.catalog.types import (
    CascadeImpact,
    CatalogNode,
    Deleted,
    DeleteFailed,
    DeleteOutcome,
    ImpactDisclosed,
    NodeType,
)

__all__ = [
    "CascadeGuard",
    "CascadeImpact",
    "CatalogMutationError",
    "CatalogNode",
    "Confirmer",
    "DeleteFailed",
    "DeleteOutcome",
    "DeleteResult",
    "DeleteStatus",
    "Deleted",
    "ImpactDisclosed",
    "NodeType",
    "describe_impact",
    "normalize_delete_response",
    "parse_cascade_impact",
]
