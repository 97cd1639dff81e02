"""HTTP rendering of workflow failures."""

from fastapi.responses import JSONResponse

from momopay.common.errors import INVALID_INPUT, PRECONDITION, TIMEOUT
from momopay.services.orchestrator.schemas import PaymentFailed


def failure_status_code(error: PaymentFailed) -> int:
    """Map a failure payload to the HTTP status returned to the caller."""

    if error.reason in {INVALID_INPUT, PRECONDITION}:
        return 400
    if error.reason == TIMEOUT:
        return 504
    return 502


def failure_response(error: PaymentFailed) -> JSONResponse:
    return JSONResponse(status_code=failure_status_code(error), content=error.model_dump(by_alias=True))
