"""Fixtures for CLI tests: settings, client and prompts wired to the fake backend."""

from unittest.mock import MagicMock

import httpx
import pytest

from tcg_console.lib.transport import ApiClient


@pytest.fixture
def cli_env(monkeypatch, backend, settings) -> MagicMock:
    """Route every CLI command to ``backend`` and return the confirmation mock."""
    confirm = MagicMock(return_value=True)
    monkeypatch.setattr("tcg_console.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("tcg_console.cli.app.get_settings", lambda: settings)
    monkeypatch.setattr("tcg_console.cli.app.setup_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(
        "tcg_console.cli.common.build_client",
        lambda s: ApiClient.from_settings(s, transport=httpx.MockTransport(backend.handler)),
    )
    monkeypatch.setattr("tcg_console.cli.common.confirm", confirm)
    return confirm
