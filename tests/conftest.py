import asyncio
from typing import Any, Dict, List, Optional, Tuple, Union

import pytest
from typer.testing import CliRunner

from userloader.domain.errors import RemoteApiError
from userloader.domain.interfaces.resource_api import ResourceApi
from userloader.domain.models.common import UserRecord
from userloader.infrastructure.config.settings import clear_test_config, reset_configuration

Scripted = Union[int, BaseException]


class FakeResourceApi(ResourceApi):
    """Scripted stand-in for the remote API.

    ``script`` maps a key (the payload's email, or the payload itself) to the
    responses of its successive calls: an int status (201 = created) or an
    exception to raise. Keys without a script (or with an exhausted one) get
    ``default_status``.
    """

    def __init__(
        self,
        script: Optional[Dict[str, List[Scripted]]] = None,
        default_status: int = 201,
        latency: float = 0.0,
    ):
        self.script = {key: list(responses) for key, responses in (script or {}).items()}
        self.default_status = default_status
        self.latency = latency
        self.calls: List[Tuple[str, float]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @staticmethod
    def key_of(payload: Any) -> str:
        return getattr(payload, "email", payload)

    def calls_for(self, key: str) -> int:
        return sum(1 for called_key, _ in self.calls if called_key == key)

    async def create_resource(self, payload: Any) -> Dict[str, Any]:
        key = self.key_of(payload)
        self.calls.append((key, asyncio.get_running_loop().time()))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            responses = self.script.get(key)
            response = responses.pop(0) if responses else self.default_status
            if isinstance(response, BaseException):
                raise response
            if response != 201:
                raise RemoteApiError(response, "scripted failure")
            return {"user_id": f"auth0|{key}", "email": key}
        finally:
            self.in_flight -= 1


class FakeAuth0Client(FakeResourceApi):
    """FakeResourceApi with the token and context-manager surface of Auth0ManagementClient."""

    def __init__(self, *args, token_error: Optional[Exception] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.token_error = token_error
        self.access_token: Optional[str] = None
        self.closed = False

    async def __aenter__(self) -> "FakeAuth0Client":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    async def acquire_access_token(self) -> str:
        if self.token_error is not None:
            raise self.token_error
        self.access_token = "fake-token"
        return self.access_token


def make_user(index: int) -> UserRecord:
    return UserRecord(
        email=f"user{index}@example.com",
        password="Secret-123",
        fullname=f"Doe, User{index}",
        nickname=f"User{index}",
    )


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config():
    """Every test starts with unloaded configuration and no overrides."""
    reset_configuration()
    clear_test_config()
    yield
    reset_configuration()
    clear_test_config()
