"""Request/response schemas and intake validation for payment workflows."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from momopay.common.errors import MomoError, ValidationError


_MSISDN = re.compile(r"^\+?\d{6,15}$")


class PaymentInitiateRequest(BaseModel):
    """Payload accepted by `POST /payments`."""

    phone: str | None = None
    amount: str | int | float | None = None


class PaymentRequest(BaseModel):
    """Validated input for one workflow run."""

    model_config = ConfigDict(frozen=True)

    payer_phone: str
    amount: Decimal
    currency: str


def validate_payment_request(phone, amount, currency: str) -> PaymentRequest:
    """Check intake fields before any provider call is made."""

    phone = (phone or "").strip() if isinstance(phone, str) else phone
    amount_text = str(amount).strip() if amount is not None else ""
    if not phone or not amount_text:
        raise ValidationError("Please enter both phone number and amount.")
    if not isinstance(phone, str) or not _MSISDN.match(phone):
        raise ValidationError("Phone number must be an MSISDN (digits, optional leading +).")
    try:
        value = Decimal(amount_text)
    except InvalidOperation as exc:
        raise ValidationError("Amount must be a number.") from exc
    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be greater than zero.")
    return PaymentRequest(payer_phone=phone, amount=value, currency=currency)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaymentSucceeded(CamelModel):
    """Terminal DONE result."""

    success: Literal[True] = True
    run_id: str
    reference_id: str
    external_id: str
    provider_response: Any = None


class PaymentFailed(CamelModel):
    """Terminal FAILED result naming the step that stopped the run."""

    success: Literal[False] = False
    run_id: str | None = None
    failing_step: str
    error: str
    reason: str
    status_code: int | None = None
    message: str

    @classmethod
    def from_error(cls, error: MomoError, run_id: str | None = None) -> "PaymentFailed":
        return cls(
            run_id=run_id,
            failing_step=error.step,
            error=str(error),
            reason=error.reason,
            status_code=error.status_code,
            message=error.user_message,
        )


WorkflowResult = PaymentSucceeded | PaymentFailed
