"""Typed failures raised by provider steps and surfaced by the orchestrator.

Every error names the workflow step it belongs to and a coarse `reason` so the
HTTP layer can tell "could not reach provider" apart from "provider rejected
request" without parsing messages.
"""

INVALID_INPUT = "invalid_input"
PRECONDITION = "precondition"
REJECTED = "rejected"
UNREACHABLE = "unreachable"
TIMEOUT = "timeout"
INVALID_RESPONSE = "invalid_response"


class MomoError(Exception):
    """Base class for every workflow failure."""

    step = "unknown"

    def __init__(
        self,
        message: str,
        *,
        reason: str = REJECTED,
        status_code: int | None = None,
        detail: str | None = None,
        step: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.status_code = status_code
        self.detail = detail
        if step is not None:
            self.step = step

    @property
    def user_message(self) -> str:
        """Single human-readable sentence for end users."""

        if self.reason == UNREACHABLE:
            return f"Could not reach the payment provider during {self.step}."
        if self.reason == TIMEOUT:
            return f"The payment provider did not respond in time during {self.step}."
        if self.reason == REJECTED:
            status = f" (HTTP {self.status_code})" if self.status_code is not None else ""
            return f"The payment provider rejected the {self.step} request{status}."
        return self.message

    def __str__(self) -> str:
        parts = [f"{self.step}: {self.message}"]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.detail:
            parts.append(f"detail={self.detail}")
        return " ".join(parts)


class ValidationError(MomoError):
    """Inbound payment request is incomplete; no workflow step was started."""

    step = "intake"

    def __init__(self, message: str) -> None:
        super().__init__(message, reason=INVALID_INPUT)


class PreconditionError(MomoError):
    """A step was invoked without one of its required inputs."""

    def __init__(self, message: str, *, step: str) -> None:
        super().__init__(message, reason=PRECONDITION, step=step)


class ProvisioningError(MomoError):
    step = "create_api_user"


class UserLookupError(MomoError):
    step = "get_api_user"


class KeyRetrievalError(MomoError):
    step = "retrieve_api_key"


class TokenError(MomoError):
    step = "generate_token"


class PaymentError(MomoError):
    step = "request_to_pay"


class StatusQueryError(MomoError):
    step = "payment_status"


class ProviderTimeoutError(MomoError):
    """Provider did not answer within the configured per-call timeout."""

    def __init__(self, message: str, *, step: str) -> None:
        super().__init__(message, reason=TIMEOUT, step=step)
