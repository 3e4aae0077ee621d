"""Unit tests for the cascading mutation guard."""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from tcg_console.lib.catalog import (
    CascadeGuard,
    CascadeImpact,
    CatalogMutationError,
    CatalogNode,
    Deleted,
    DeleteFailed,
    DeleteStatus,
    ImpactDisclosed,
    NodeType,
    describe_impact,
)
from tcg_console.schemas.catalog import MutationStatus

EXPANSION = CatalogNode(NodeType.EXPANSION, 7, "Scarlet & Violet")
SET = CatalogNode(NodeType.SET, 42, "Paldea Evolved")
EMPTY_SET = CatalogNode(NodeType.SET, 43)

_EXPANSION_IMPACT = {"confirmRequired": True, "setCount": 3, "cardCount": 900, "message": "Expansion has sets"}


def _guard(api_client, answers: list[bool] | None = None) -> tuple[CascadeGuard, MagicMock]:
    confirm = MagicMock(side_effect=answers if answers is not None else [])
    return CascadeGuard(api_client, confirm), confirm


class TestAttemptDelete:
    """Tests for CascadeGuard.attempt_delete()."""

    @pytest.mark.asyncio
    async def test_leaf_only_node_deleted(self, backend, api_client) -> None:
        backend.add("DELETE", "/catalog/sets/43", httpx.Response(204))
        guard, confirm = _guard(api_client)

        assert await guard.attempt_delete(EMPTY_SET) == Deleted()
        assert backend.requests[0].url.params["force"] == "false"
        confirm.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [200, 409])
    async def test_dependents_disclosed_not_deleted(self, backend, api_client, status_code: int) -> None:
        backend.add("DELETE", "/catalog/expansions/7", httpx.Response(status_code, json=_EXPANSION_IMPACT))
        guard, _ = _guard(api_client)

        outcome = await guard.attempt_delete(EXPANSION)

        assert outcome == ImpactDisclosed(CascadeImpact(3, 900, "Expansion has sets"))
        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_force_flag_sent(self, backend, api_client) -> None:
        backend.add("DELETE", "/catalog/expansions/7", httpx.Response(204))
        guard, _ = _guard(api_client)

        assert await guard.attempt_delete(EXPANSION, force=True) == Deleted()
        assert backend.requests[0].url.params["force"] == "true"

    @pytest.mark.asyncio
    async def test_second_forced_delete_is_not_found(self, backend, api_client) -> None:
        backend.add(
            "DELETE",
            "/catalog/sets/42",
            httpx.Response(204),
            httpx.Response(404, json={"message": "Set not found"}),
        )
        guard, _ = _guard(api_client)

        assert await guard.attempt_delete(SET, force=True) == Deleted()
        outcome = await guard.attempt_delete(SET, force=True)
        assert isinstance(outcome, DeleteFailed)
        assert outcome.not_found is True

    @pytest.mark.asyncio
    async def test_transport_failure_is_error_outcome(self, backend, api_client) -> None:
        backend.add("DELETE", "/catalog/sets/42", httpx.ConnectError("refused"))
        guard, _ = _guard(api_client)

        outcome = await guard.attempt_delete(SET)
        assert isinstance(outcome, DeleteFailed)
        assert outcome.status_code is None


class TestDeleteWithConfirmation:
    """Tests for the confirm -> disclose -> confirm -> force flow."""

    @pytest.mark.asyncio
    async def test_expansion_scenario(self, backend, api_client) -> None:
        backend.add(
            "DELETE",
            "/catalog/expansions/7",
            httpx.Response(409, json=_EXPANSION_IMPACT),
            httpx.Response(204),
        )
        guard, confirm = _guard(api_client, [True, True])

        result = await guard.delete_with_confirmation(EXPANSION)

        assert result.status is DeleteStatus.DELETED
        assert result.impact == CascadeImpact(3, 900, "Expansion has sets")
        assert confirm.call_args_list[0].args[0] == 'Delete expansion "Scarlet & Violet"?'
        prompt = confirm.call_args.args[0]
        assert "3 set(s)" in prompt
        assert "900 card(s)" in prompt
        forces = [r.url.params["force"] for r in backend.requests]
        assert forces == ["false", "true"]

    @pytest.mark.asyncio
    async def test_declined_up_front_sends_nothing(self, backend, api_client) -> None:
        backend.add("DELETE", "/catalog/sets/43", httpx.Response(204))
        guard, confirm = _guard(api_client, [False])

        result = await guard.delete_with_confirmation(EMPTY_SET)

        assert result.status is DeleteStatus.CANCELLED
        assert result.impact is None
        assert backend.requests == []
        confirm.assert_called_once_with("Delete set 43?")

    @pytest.mark.asyncio
    async def test_declined_cascade_never_forces(self, backend, api_client) -> None:
        backend.add("DELETE", "/catalog/expansions/7", httpx.Response(200, json=_EXPANSION_IMPACT))
        guard, confirm = _guard(api_client, [True, False])

        result = await guard.delete_with_confirmation(EXPANSION)

        assert result.status is DeleteStatus.CANCELLED
        assert len(backend.requests) == 1
        assert confirm.call_count == 2

    @pytest.mark.asyncio
    async def test_immediate_delete_asks_once(self, backend, api_client) -> None:
        backend.add("DELETE", "/catalog/sets/43", httpx.Response(204))
        guard, confirm = _guard(api_client, [True])

        result = await guard.delete_with_confirmation(EMPTY_SET)

        assert result.status is DeleteStatus.DELETED
        assert result.impact is None
        confirm.assert_called_once_with("Delete set 43?")
        assert backend.requests[0].url.params["force"] == "false"

    @pytest.mark.asyncio
    async def test_not_found_on_forced_retry_is_benign(self, backend, api_client) -> None:
        backend.add(
            "DELETE",
            "/catalog/sets/42",
            httpx.Response(409, json={"confirmRequired": True, "cardCount": 12}),
            httpx.Response(404, json={"message": "Set not found"}),
        )
        guard, _ = _guard(api_client, [True, True])

        result = await guard.delete_with_confirmation(SET)

        assert result.status is DeleteStatus.DELETED

    @pytest.mark.asyncio
    async def test_forced_retry_failure_reported(self, backend, api_client) -> None:
        backend.add(
            "DELETE",
            "/catalog/sets/42",
            httpx.Response(409, json={"confirmRequired": True, "cardCount": 12}),
            httpx.Response(500, json={"error": "Constraint violation"}),
        )
        guard, _ = _guard(api_client, [True, True])

        result = await guard.delete_with_confirmation(SET)

        assert result.status is DeleteStatus.FAILED
        assert result.message == "Constraint violation"

    @pytest.mark.asyncio
    async def test_first_attempt_failure_reported(self, backend, api_client) -> None:
        backend.add("DELETE", "/catalog/sets/42", httpx.Response(403, json={"message": "Admins only"}))
        guard, confirm = _guard(api_client, [True])

        result = await guard.delete_with_confirmation(SET)

        assert result.status is DeleteStatus.FAILED
        assert result.message == "Admins only"
        confirm.assert_called_once()


class TestDescribeImpact:
    """Tests for the confirmation prompt text."""

    def test_expansion_prompt_names_both_counts(self) -> None:
        prompt = describe_impact(EXPANSION, CascadeImpact(12, 4302, "Careful"))
        assert prompt.startswith("Careful")
        assert '"Scarlet & Violet"' in prompt
        assert "12 set(s) and 4302 card(s)" in prompt
        assert "may have changed" in prompt

    def test_set_prompt_names_cards_only(self) -> None:
        prompt = describe_impact(SET, CascadeImpact(0, 80))
        assert "80 card(s)" in prompt
        assert "set(s)" not in prompt


class TestResetCatalogNode:
    """Tests for CascadeGuard.reset_catalog_node()."""

    @pytest.mark.asyncio
    async def test_reset_after_both_confirmations(self, backend, api_client) -> None:
        backend.add(
            "POST",
            "/catalog/sets/42/reset",
            httpx.Response(200, json={"deletedCount": 193, "reimportedCount": 193, "errorCount": 0}),
        )
        guard, confirm = _guard(api_client, [True, True])

        outcome = await guard.reset_catalog_node(SET, " sv2 ")

        assert outcome is not None
        assert outcome.deleted_count == 193
        assert outcome.status is MutationStatus.SUCCESS
        assert confirm.call_count == 2
        assert json.loads(backend.requests[0].content) == {"externalSourceRef": "sv2"}

    @pytest.mark.asyncio
    async def test_partial_failure_is_success_with_warnings(self, backend, api_client) -> None:
        backend.add(
            "POST",
            "/catalog/sets/42/reset",
            httpx.Response(200, json={"deletedCount": 193, "reimportedCount": 180, "errorCount": 13}),
        )
        guard, _ = _guard(api_client, [True, True])

        outcome = await guard.reset_catalog_node(SET, "sv2")

        assert outcome is not None
        assert outcome.has_warnings is True
        assert outcome.status is MutationStatus.SUCCESS_WITH_WARNINGS

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answers", [[False], [True, False]])
    async def test_declined_sends_nothing(self, backend, api_client, answers: list[bool]) -> None:
        guard, _ = _guard(api_client, answers)

        assert await guard.reset_catalog_node(SET, "sv2") is None
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_only_sets_can_be_reset(self, backend, api_client) -> None:
        guard, confirm = _guard(api_client)
        with pytest.raises(ValueError, match="only supported for sets"):
            await guard.reset_catalog_node(EXPANSION, "sv")
        confirm.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_source_ref_rejected(self, backend, api_client) -> None:
        guard, _ = _guard(api_client)
        with pytest.raises(ValueError, match="external_source_ref"):
            await guard.reset_catalog_node(SET, "   ")

    @pytest.mark.asyncio
    async def test_request_failure_raises(self, backend, api_client) -> None:
        backend.add("POST", "/catalog/sets/42/reset", httpx.Response(502, json={"message": "TCGdex unreachable"}))
        guard, _ = _guard(api_client, [True, True])

        with pytest.raises(CatalogMutationError, match="TCGdex unreachable") as exc_info:
            await guard.reset_catalog_node(SET, "sv2")
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_malformed_response_raises(self, backend, api_client) -> None:
        backend.add("POST", "/catalog/sets/42/reset", httpx.Response(200, json={"deletedCount": -1}))
        guard, _ = _guard(api_client, [True, True])

        with pytest.raises(CatalogMutationError, match="Unexpected response"):
            await guard.reset_catalog_node(SET, "sv2")


class TestReloadCatalogNode:
    """Tests for CascadeGuard.reload_catalog_node()."""

    @pytest.mark.asyncio
    async def test_reload_is_not_gated(self, backend, api_client) -> None:
        backend.add(
            "POST",
            "/catalog/sets/42/reload",
            httpx.Response(200, json={"addedCount": 4, "skippedExistingCount": 189, "errorCount": 0}),
        )
        guard, confirm = _guard(api_client)

        outcome = await guard.reload_catalog_node(SET)

        assert outcome.added_count == 4
        assert outcome.skipped_existing_count == 189
        assert outcome.status is MutationStatus.SUCCESS
        confirm.assert_not_called()

    @pytest.mark.asyncio
    async def test_reload_with_errors_has_warnings(self, backend, api_client) -> None:
        backend.add(
            "POST",
            "/catalog/sets/42/reload",
            httpx.Response(200, json={"addedCount": 1, "skippedExistingCount": 10, "errorCount": 2}),
        )
        guard, _ = _guard(api_client)

        outcome = await guard.reload_catalog_node(SET)

        assert outcome.status is MutationStatus.SUCCESS_WITH_WARNINGS

    @pytest.mark.asyncio
    async def test_only_sets_can_be_reloaded(self, backend, api_client) -> None:
        guard, _ = _guard(api_client)
        with pytest.raises(ValueError, match="only supported for sets"):
            await guard.reload_catalog_node(EXPANSION)
        assert backend.requests == []
