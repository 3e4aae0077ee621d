"""Shared test fixtures: settings, a scripted fake backend and an API client bound to it."""

from collections import defaultdict
from collections.abc import AsyncGenerator, Callable

import httpx
import pytest

from tcg_console.core.config import Settings
from tcg_console.lib.transport import ApiClient

BASE_URL = "http://backend.test/api"

Reply = httpx.Response | Exception | Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """Scripted backend keyed by method and path (relative to the API root).

    Replies registered for a route are consumed in order; the last one
    keeps being returned once the others are used up.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Reply]] = defaultdict(list)

    def add(self, method: str, path: str, *replies: Reply) -> None:
        self._routes[(method.upper(), path)].extend(replies)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and self._relative(r) == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        replies = self._routes.get((request.method, self._relative(request)))
        if not replies:
            return httpx.Response(404, json={"message": "no route"})
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        # Fresh copy so a repeated reply is never reused after being closed.
        return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)

    @staticmethod
    def _relative(request: httpx.Request) -> str:
        return request.url.path.removeprefix("/api")


@pytest.fixture
def settings() -> Settings:
    """Test application settings with fast polling."""
    return Settings(
        _env_file=None,
        api_base_url=BASE_URL,
        api_token="test-token",
        request_timeout=5.0,
        poll_interval=0.01,
        poll_max_backoff=0.05,
        job_grace_period=0.05,
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def api_client(backend: FakeBackend, settings: Settings) -> AsyncGenerator[ApiClient]:
    """API client whose requests are served by ``backend``."""
    client = ApiClient.from_settings(settings, transport=httpx.MockTransport(backend.handler))
    yield client
    await client.close()
