"""Map raw delete responses onto :data:`DeleteOutcome`.

The backend signals "dependents exist, confirm first" in two shapes: a
2xx body carrying a confirmation marker, or a 409 carrying the same
payload.  Both become the same :class:`ImpactDisclosed` outcome here so no
caller ever looks at the HTTP status itself.
"""

from typing import Any

from tcg_console.lib.catalog.types import CascadeImpact, Deleted, DeleteFailed, DeleteOutcome, ImpactDisclosed
from tcg_console.lib.transport import extract_error_message

CONFIRMATION_MARKERS = ("confirmRequired", "confirmationRequired", "requiresConfirmation")

_CHILD_COUNT_KEYS = ("affectedChildCount", "setCount")
_LEAF_COUNT_KEYS = ("affectedLeafCount", "cardCount")
_EXPLANATION_KEYS = ("explanation", "message")

_CONFLICT = 409
_NOT_FOUND = 404


def _first_count(payload: dict[str, Any], keys: tuple[str, ...]) -> int:
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        try:
            return max(int(value), 0)
        except (TypeError, ValueError):
            continue
    return 0


def _first_text(payload: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def has_confirmation_marker(body: Any) -> bool:
    """Whether ``body`` is flagged as requiring confirmation."""
    return isinstance(body, dict) and any(body.get(marker) is True for marker in CONFIRMATION_MARKERS)


def _carries_impact(body: Any) -> bool:
    if has_confirmation_marker(body):
        return True
    return isinstance(body, dict) and any(key in body for key in _CHILD_COUNT_KEYS + _LEAF_COUNT_KEYS)


def parse_cascade_impact(payload: dict[str, Any]) -> CascadeImpact:
    """Extract the impact counts from a disclosure payload.

    Accepts both the ``affectedChildCount``/``affectedLeafCount``/``explanation``
    keys and the ``setCount``/``cardCount``/``message`` spelling.
    """
    return CascadeImpact(
        affected_child_count=_first_count(payload, _CHILD_COUNT_KEYS),
        affected_leaf_count=_first_count(payload, _LEAF_COUNT_KEYS),
        explanation=_first_text(payload, _EXPLANATION_KEYS),
    )


def normalize_delete_response(status_code: int, body: Any) -> DeleteOutcome:
    """Classify one delete response.

    Args:
        status_code: HTTP status of the response.
        body: Decoded JSON body, or ``None`` when empty.

    Returns:
        ``ImpactDisclosed`` for a marked 2xx body or a 409 with an impact
        payload, ``Deleted`` for any other 2xx, ``DeleteFailed`` otherwise.
    """
    if 200 <= status_code < 300:
        if has_confirmation_marker(body):
            return ImpactDisclosed(parse_cascade_impact(body))
        return Deleted()

    if status_code == _CONFLICT and _carries_impact(body):
        return ImpactDisclosed(parse_cascade_impact(body))

    if status_code == _NOT_FOUND:
        fallback = "The item no longer exists"
    else:
        fallback = f"Delete failed (HTTP {status_code})"
    return DeleteFailed(extract_error_message(body, fallback=fallback), status_code=status_code)
