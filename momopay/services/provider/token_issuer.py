"""Access token issuance from a provisioned user/key pair."""

import base64

from pydantic import SecretStr, ValidationError

from momopay.common.errors import INVALID_RESPONSE, PreconditionError, TokenError
from momopay.common.logging import logger
from momopay.services.provider.client import MomoClient, json_body
from momopay.services.provider.models import IssuedToken


def basic_auth_header(user_id: str, api_key: str) -> str:
    """Return `Basic base64("{user_id}:{api_key}")`."""

    credentials = f"{user_id}:{api_key}".encode("utf-8")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


class TokenIssuer:
    """Exchanges user id + API key for a short-lived bearer token."""

    def __init__(self, client: MomoClient) -> None:
        self.client = client

    async def issue_token(self, user_id: str, api_key: SecretStr | str) -> IssuedToken:
        raw_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        if not user_id or not raw_key:
            raise PreconditionError("user id and api key are required", step=TokenError.step)

        response = await self.client.call(
            TokenError.step,
            TokenError,
            "POST",
            "/collection/token/",
            headers={"Authorization": basic_auth_header(user_id, raw_key)},
        )
        payload = json_body(response)
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token or not isinstance(access_token, str):
            raise TokenError("provider response has no access_token", reason=INVALID_RESPONSE)
        try:
            token = IssuedToken(
                access_token=access_token,
                token_type=payload.get("token_type") or "access_token",
                expires_in=payload.get("expires_in"),
            )
        except ValidationError as exc:
            raise TokenError(
                "provider token response is malformed",
                reason=INVALID_RESPONSE,
                detail="invalid fields: " + ", ".join(".".join(map(str, e["loc"])) for e in exc.errors()),
            ) from exc
        logger.info("access_token_issued user_id=%s expires_in=%s", user_id, token.expires_in)
        return token
