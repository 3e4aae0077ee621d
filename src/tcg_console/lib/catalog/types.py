"""Catalog node and delete outcome types."""

import enum
from dataclasses import dataclass


class NodeType(enum.StrEnum):
    """Level of a node in the Expansion -> Set -> Card hierarchy."""

    EXPANSION = "expansion"
    SET = "set"

    @property
    def collection(self) -> str:
        """Path segment of the backend collection for this node type."""
        return f"{self.value}s"


@dataclass(frozen=True)
class CatalogNode:
    """A deletable node of the catalog hierarchy.

    ``name`` is only used for display.
    """

    node_type: NodeType
    id: int | str
    name: str | None = None

    @property
    def resource_path(self) -> str:
        return f"/catalog/{self.node_type.collection}/{self.id}"

    @property
    def label(self) -> str:
        if self.name:
            return f'{self.node_type.value} "{self.name}"'
        return f"{self.node_type.value} {self.id}"


@dataclass(frozen=True)
class CascadeImpact:
    """Dependents the backend would remove along with a node.

    The counts describe the catalog at the time of disclosure only.
    """

    affected_child_count: int
    affected_leaf_count: int
    explanation: str = ""


@dataclass(frozen=True)
class Deleted:
    """The backend deleted the node."""


@dataclass(frozen=True)
class ImpactDisclosed:
    """The backend refused to cascade without confirmation and disclosed the impact."""

    impact: CascadeImpact


@dataclass(frozen=True)
class DeleteFailed:
    """The delete failed for a reason other than a cascade disclosure."""

    reason: str
    status_code: int | None = None

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


DeleteOutcome = Deleted | ImpactDisclosed | DeleteFailed
