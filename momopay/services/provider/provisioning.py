"""Credential provisioning: API user creation and API key retrieval."""

from uuid import uuid4

from pydantic import SecretStr

from momopay.common.errors import (
    INVALID_RESPONSE,
    KeyRetrievalError,
    PreconditionError,
    ProvisioningError,
    UserLookupError,
)
from momopay.common.logging import logger
from momopay.services.provider.client import MomoClient, json_body, path_segment
from momopay.services.provider.models import ProvisionedUser


class CredentialProvisioner:
    """Creates a sandbox API user and obtains its provider-minted key."""

    def __init__(self, client: MomoClient) -> None:
        self.client = client

    async def provision_user(self) -> ProvisionedUser:
        """Create a new API user; its id is the `X-Reference-Id` we generate."""

        user_id = str(uuid4())
        response = await self.client.call(
            ProvisioningError.step,
            ProvisioningError,
            "POST",
            "/v1_0/apiuser",
            headers={"X-Reference-Id": user_id},
            json={"providerCallbackHost": self.client.config.momo_callback_host},
        )
        logger.info("api_user_created user_id=%s status=%s", user_id, response.status_code)
        return ProvisionedUser(user_id=user_id, provider_response=json_body(response))

    async def fetch_user(self, user_id: str) -> dict:
        """Read back a created user to confirm the provider knows it."""

        if not user_id:
            raise PreconditionError("user id is required", step=UserLookupError.step)
        response = await self.client.call(
            UserLookupError.step,
            UserLookupError,
            "GET",
            f"/v1_0/apiuser/{path_segment(user_id)}",
        )
        payload = json_body(response)
        if not isinstance(payload, dict):
            raise UserLookupError("provider returned no user payload", reason=INVALID_RESPONSE)
        return payload

    async def fetch_api_key(self, user_id: str) -> SecretStr:
        """Ask the provider to mint an API key for exactly `user_id`.

        An unknown user (provisioning not finished upstream) fails here; the
        caller decides whether that is worth a fresh run.
        """

        if not user_id:
            raise PreconditionError("user id is required", step=KeyRetrievalError.step)
        response = await self.client.call(
            KeyRetrievalError.step,
            KeyRetrievalError,
            "POST",
            f"/v1_0/apiuser/{path_segment(user_id)}/apikey",
        )
        payload = json_body(response)
        api_key = payload.get("apiKey") if isinstance(payload, dict) else None
        if not api_key or not isinstance(api_key, str):
            raise KeyRetrievalError("provider response has no apiKey", reason=INVALID_RESPONSE)
        logger.info("api_key_retrieved user_id=%s", user_id)
        return SecretStr(api_key)
