"""Step-by-step provider routes for manual sandbox walkthroughs.

Each route runs exactly one provider call. They hand credentials back to the
caller, so the app only mounts them when `EXPOSE_STEP_ENDPOINTS` is set.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from momopay.common.errors import MomoError
from momopay.common.logging import logger
from momopay.services.api_gateway.dependencies import ProviderServices
from momopay.services.api_gateway.responses import failure_response
from momopay.services.orchestrator.schemas import PaymentFailed

router = APIRouter(tags=["Provider steps"])


class TokenRequest(BaseModel):
    user_id: str = ""
    api_key: str = ""


class RequestToPayRequest(BaseModel):
    phone: str = ""
    amount: str = ""
    access_token: str = ""


def _services(request: Request) -> ProviderServices:
    return request.app.state.services


def _failure(exc: MomoError):
    logger.warning("provider_step_failed step=%s reason=%s", exc.step, exc.reason)
    return failure_response(PaymentFailed.from_error(exc))


@router.post("/api-users")
async def create_api_user(request: Request):
    try:
        user = await _services(request).provisioner.provision_user()
    except MomoError as exc:
        return _failure(exc)
    return {"userId": user.user_id, "response": user.provider_response}


@router.get("/api-users/{user_id}")
async def get_api_user(user_id: str, request: Request):
    try:
        return await _services(request).provisioner.fetch_user(user_id)
    except MomoError as exc:
        return _failure(exc)


@router.post("/api-users/{user_id}/api-key")
async def retrieve_api_key(user_id: str, request: Request):
    try:
        api_key = await _services(request).provisioner.fetch_api_key(user_id)
    except MomoError as exc:
        return _failure(exc)
    return {"apiKey": api_key.get_secret_value()}


@router.post("/token")
async def generate_token(req: TokenRequest, request: Request):
    try:
        token = await _services(request).token_issuer.issue_token(req.user_id, req.api_key)
    except MomoError as exc:
        return _failure(exc)
    return {
        "access_token": token.access_token.get_secret_value(),
        "token_type": token.token_type,
        "expires_in": token.expires_in,
    }


@router.post("/request-to-pay")
async def request_to_pay(req: RequestToPayRequest, request: Request):
    services = _services(request)
    try:
        transaction = await services.initiator.request_to_pay(req.phone, req.amount, req.access_token)
    except MomoError as exc:
        return _failure(exc)
    return {
        "success": True,
        "referenceId": transaction.reference_id,
        "externalId": transaction.external_id,
        "providerResponse": transaction.provider_response,
    }
