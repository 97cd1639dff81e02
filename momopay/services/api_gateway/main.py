"""Public entrypoint for MoMo payments.

The gateway validates intake, runs one provisioning-and-payment workflow per
request against the shared provider connection pool, and exposes status
polling for accepted transactions.
"""

from contextlib import asynccontextmanager
from time import perf_counter

import httpx
from fastapi import FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from momopay.common.config import CommonSettings, settings
from momopay.common.errors import MomoError
from momopay.common.logging import bind_trace_id, configure_logging, logger
from momopay.common.metrics import metrics_response, observe_http_request
from momopay.common.startup import log_startup_config
from momopay.common.tracing import instrument_app, setup_tracing
from momopay.services.api_gateway.dependencies import ProviderServices
from momopay.services.api_gateway.responses import failure_response
from momopay.services.api_gateway.steps import router as steps_router
from momopay.services.orchestrator.schemas import PaymentFailed, PaymentInitiateRequest
from momopay.services.provider.client import build_http_client

STARTUP_KEYS = [
    "service_name",
    "momo_base_url",
    "momo_subscription_key",
    "momo_callback_host",
    "momo_target_environment",
    "momo_currency",
    "momo_request_timeout_seconds",
    "momo_verify_api_user",
    "expose_step_endpoints",
]


def route_template(request: Request) -> str:
    """Label a request by its matched route so ids stay out of metric labels."""

    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def create_app(
    config: CommonSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the FastAPI app; `transport` lets tests stand in for the provider."""

    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Own the provider connection pool for the app lifecycle."""

        http = build_http_client(config, transport=transport)
        app.state.services = ProviderServices.build(config, http)
        yield
        await http.aclose()

    app = FastAPI(title="MoMo Payments Gateway", lifespan=lifespan)
    app.state.config = config
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if setup_tracing(config):
        instrument_app(app)

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        started = perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            observe_http_request(
                config.service_name,
                route_template(request),
                request.method,
                status_code,
                perf_counter() - started,
            )

    @app.get("/", response_class=PlainTextResponse)
    def home():
        return "MoMo API Server is up and running!"

    @app.post("/payments")
    async def create_payment(
        req: PaymentInitiateRequest,
        request: Request,
        x_correlation_id: str | None = Header(default=None),
    ):
        """Run the full provisioning-and-payment workflow for one payer."""

        bind_trace_id(x_correlation_id)
        services: ProviderServices = request.app.state.services
        result = await services.workflow.initiate(req.phone, req.amount)
        if not result.success:
            return failure_response(result)
        return result.model_dump(by_alias=True)

    @app.get("/payments/{reference_id}/status")
    async def payment_status(
        reference_id: str,
        request: Request,
        authorization: str | None = Header(default=None),
        x_correlation_id: str | None = Header(default=None),
    ):
        """Return the provider's status payload for `reference_id` verbatim."""

        bind_trace_id(x_correlation_id)
        services: ProviderServices = request.app.state.services
        token = None
        if authorization and authorization.lower().startswith("bearer "):
            token = authorization[7:].strip()
        try:
            return await services.reconciler.get_status(reference_id, access_token=token)
        except MomoError as exc:
            logger.warning("payment_status_failed reference_id=%s error=%s", reference_id, exc)
            return failure_response(PaymentFailed.from_error(exc))

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    @app.get("/health")
    def health():
        """Container health probe endpoint."""

        return {"ok": True}

    if config.expose_step_endpoints:
        app.include_router(steps_router, prefix="/provider")

    return app


def build_default_app() -> FastAPI:
    configure_logging()
    log_startup_config(settings, STARTUP_KEYS)
    return create_app(settings)


app = build_default_app()
