"""Concrete implementation of the ResourceApi interface for the Auth0 Management API.

Acquires a client-credentials access token once, then creates users through
`POST /api/v2/users`. HTTP failures are translated into RemoteApiError so the
scheduler only ever sees status codes.
"""

import logging
from typing import Any, Dict, Optional

import httpx

# Domain Layer Imports
from userloader.domain.errors import RemoteApiError, TokenAcquisitionError
from userloader.domain.interfaces.resource_api import ResourceApi
from userloader.domain.models.common import UserRecord

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
CREATED_STATUS = 201


class Auth0ManagementClient(ResourceApi):
    """Creates users on an Auth0 tenant."""

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        connection: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initializes the Auth0 client.

        Args:
            domain: Tenant domain, e.g. ``example.eu.auth0.com``.
            client_id: Machine-to-machine application client id.
            client_secret: Machine-to-machine application client secret.
            connection: Database connection the users are created in.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        if not domain:
            raise ValueError("Auth0 domain must be provided.")
        self.domain = domain
        self.client_id = client_id
        self.client_secret = client_secret
        self.connection = connection
        self.base_url = f"https://{domain}"
        self.access_token: Optional[str] = None
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)
        logger.info(f"Auth0ManagementClient initialized for domain: {domain}")

    async def __aenter__(self) -> "Auth0ManagementClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def acquire_access_token(self) -> str:
        """Fetches a Management API token via the client-credentials grant.

        Raises:
            TokenAcquisitionError: If the token could not be obtained.
        """
        logger.info("acquiring access_token for mgmt-api")
        body = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": f"{self.base_url}/api/v2/",
            "grant_type": "client_credentials",
            "scope": "create:users",
        }
        try:
            response = await self._client.post("/oauth/token", json=body)
            response.raise_for_status()
            token = response.json()["access_token"]
        except httpx.HTTPStatusError as e:
            raise TokenAcquisitionError(
                f"Token endpoint returned {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise TokenAcquisitionError(f"Token request failed: {e}") from e
        except (KeyError, ValueError) as e:
            raise TokenAcquisitionError(f"Token response did not contain an access_token: {e}") from e

        self.access_token = token
        return token

    def build_user_body(self, user: UserRecord) -> Dict[str, Any]:
        return {
            "connection": self.connection,
            "email": user.email,
            "password": user.password,
            "email_verified": True,
            "user_metadata": {
                "fullName": user.fullname,
                "nickName": user.nickname,
                "locale": "en-US",
            },
            "app_metadata": {
                "useMfa": False,
            },
        }

    async def create_resource(self, payload: UserRecord) -> Dict[str, Any]:
        """Creates one user.

        Returns:
            The created user as returned by Auth0 (includes ``user_id``).

        Raises:
            RemoteApiError: Non-201 response (with its status) or network error
                (status None).
        """
        if self.access_token is None:
            raise RuntimeError("acquire_access_token() must be called before creating users.")

        try:
            response = await self._client.post(
                "/api/v2/users",
                json=self.build_user_body(payload),
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
        except httpx.RequestError as e:
            raise RemoteApiError(None, f"{type(e).__name__}: {e}") from e

        if response.status_code != CREATED_STATUS:
            raise RemoteApiError(response.status_code, response.text[:200])

        # The user exists once Auth0 answered 201, whatever the body says.
        try:
            created = response.json()
        except ValueError:
            created = None
        if not isinstance(created, dict):
            logger.warning(f"user {payload.email} created but response body is not a JSON object; user_id unknown")
            return {"user_id": None, "email": payload.email}
        logger.debug(f"user created: {created.get('email', payload.email)}")
        return created
