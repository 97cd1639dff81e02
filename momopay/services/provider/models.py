"""Workflow-local credential and transaction records.

None of these are persisted; they live for one workflow run. Secrets are held
as `SecretStr` so they never show up in `repr`, logs or tracebacks.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, SecretStr


class ProvisionedUser(BaseModel):
    """Provider-side API user created for one run."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    provider_response: Any = None


class IssuedToken(BaseModel):
    """Bearer credential minted from a user/key pair."""

    model_config = ConfigDict(frozen=True)

    access_token: SecretStr
    token_type: str = "access_token"
    expires_in: int | None = None


class PaymentTransaction(BaseModel):
    """Identifiers of one accepted request-to-pay.

    `external_id` travels in the body for provider-side correlation;
    `reference_id` is the `X-Reference-Id` used to query status later.
    """

    model_config = ConfigDict(frozen=True)

    reference_id: str
    external_id: str
    provider_response: Any = None
