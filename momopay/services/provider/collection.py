"""Request-to-pay submission and transaction status lookup."""

from decimal import Decimal
from uuid import uuid4

from pydantic import SecretStr

from momopay.common.errors import MomoError, PaymentError, PreconditionError, StatusQueryError
from momopay.common.logging import logger, reference_id_ctx
from momopay.common.metrics import status_queries_total
from momopay.services.provider.client import MomoClient, json_body, path_segment
from momopay.services.provider.models import PaymentTransaction


def _secret(value: SecretStr | str | None) -> str:
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return value or ""


def amount_text(amount: Decimal | str) -> str:
    """Render an amount in plain decimal notation, never exponent form."""

    if isinstance(amount, Decimal):
        return format(amount, "f")
    return str(amount)


class PaymentInitiator:
    """Submits one collection request against a payer's wallet."""

    def __init__(self, client: MomoClient) -> None:
        self.client = client

    def build_body(self, payer_phone: str, amount: Decimal | str, external_id: str) -> dict:
        config = self.client.config
        return {
            "amount": amount_text(amount),
            "currency": config.momo_currency,
            "externalId": external_id,
            "payer": {"partyIdType": "MSISDN", "partyId": payer_phone},
            "payerMessage": config.momo_payer_message,
            "payeeNote": config.momo_payee_note,
        }

    async def request_to_pay(
        self,
        payer_phone: str,
        amount: Decimal | str,
        access_token: SecretStr | str | None,
    ) -> PaymentTransaction:
        """Submit the transaction; a 2xx means accepted for processing, not paid."""

        token = _secret(access_token)
        if not token:
            raise PreconditionError("access token not available", step=PaymentError.step)
        if not payer_phone or amount in (None, ""):
            raise PreconditionError("payer phone and amount are required", step=PaymentError.step)

        external_id = str(uuid4())
        reference_id = str(uuid4())
        reference_id_ctx.set(reference_id)
        response = await self.client.call(
            PaymentError.step,
            PaymentError,
            "POST",
            "/collection/v1_0/requesttopay",
            headers={
                "X-Reference-Id": reference_id,
                "Authorization": f"Bearer {token}",
            },
            json=self.build_body(payer_phone, amount, external_id),
            target_environment=True,
        )
        logger.info(
            "request_to_pay_accepted reference_id=%s external_id=%s status=%s",
            reference_id,
            external_id,
            response.status_code,
        )
        return PaymentTransaction(
            reference_id=reference_id,
            external_id=external_id,
            provider_response=json_body(response),
        )


class StatusReconciler:
    """Reads the provider's view of a transaction; nothing is cached."""

    def __init__(self, client: MomoClient) -> None:
        self.client = client

    async def get_status(self, reference_id: str, access_token: SecretStr | str | None = None):
        if not reference_id:
            raise PreconditionError("reference id is required", step=StatusQueryError.step)
        headers = {}
        token = _secret(access_token)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            response = await self.client.call(
                StatusQueryError.step,
                StatusQueryError,
                "GET",
                f"/collection/v1_0/requesttopay/{path_segment(reference_id)}",
                headers=headers,
                target_environment=True,
            )
        except MomoError:
            status_queries_total.labels(service=self.client.config.service_name, outcome="failed").inc()
            raise
        status_queries_total.labels(service=self.client.config.service_name, outcome="ok").inc()
        return json_body(response)
