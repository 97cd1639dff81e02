"""Provisioning-and-payment workflow.

Runs create user -> (verify user) -> fetch API key -> issue token ->
request to pay as a strictly sequential chain. Each step's output is the only
input of the next one, so a later coroutine is never even created once an
earlier step has raised. The first failure moves the run to FAILED and is
reported with its step name; nothing is retried and nothing already created
on the provider side is cleaned up.
"""

import time
from collections.abc import Awaitable
from typing import TypeVar

from momopay.common.config import CommonSettings
from momopay.common.errors import (
    KeyRetrievalError,
    MomoError,
    PaymentError,
    ProvisioningError,
    TokenError,
    UserLookupError,
    ValidationError,
)
from momopay.common.logging import logger, reference_id_ctx, run_id_ctx
from momopay.common.metrics import workflow_duration_seconds, workflow_runs_total, workflow_step_failures_total
from momopay.common.state_machine import (
    DONE,
    KEY_RETRIEVED,
    PAYMENT_SUBMITTED,
    TOKEN_ISSUED,
    USER_CREATED,
    USER_VERIFIED,
)
from momopay.common.tracing import get_tracer
from momopay.services.orchestrator.models import WorkflowRun
from momopay.services.orchestrator.schemas import (
    PaymentFailed,
    PaymentRequest,
    PaymentSucceeded,
    WorkflowResult,
    validate_payment_request,
)
from momopay.services.provider.collection import PaymentInitiator
from momopay.services.provider.provisioning import CredentialProvisioner
from momopay.services.provider.token_issuer import TokenIssuer

T = TypeVar("T")

tracer = get_tracer(__name__)


class PaymentWorkflow:
    """Sequences the provider steps for one end-to-end payment."""

    def __init__(
        self,
        config: CommonSettings,
        provisioner: CredentialProvisioner,
        token_issuer: TokenIssuer,
        initiator: PaymentInitiator,
    ) -> None:
        self.config = config
        self.provisioner = provisioner
        self.token_issuer = token_issuer
        self.initiator = initiator

    async def initiate(self, phone, amount) -> WorkflowResult:
        """Validate raw intake fields, then run the workflow.

        Incomplete input is rejected here, before any provider call.
        """

        try:
            request = validate_payment_request(phone, amount, self.config.momo_currency)
        except ValidationError as exc:
            run = WorkflowRun()
            run.fail(exc)
            self._record_failure(exc)
            logger.info("payment_rejected_at_intake run_id=%s error=%s", run.run_id, exc.message)
            return PaymentFailed.from_error(exc, run_id=run.run_id)
        return await self.run(request)

    async def _step(self, run: WorkflowRun, step: str, next_state: str, awaitable: Awaitable[T]) -> T:
        with tracer.start_as_current_span(f"momo.{step}"):
            result = await awaitable
        run.advance(next_state, reason=step)
        logger.info("workflow_step_completed step=%s state=%s", step, next_state)
        return result

    async def run(self, request: PaymentRequest, run: WorkflowRun | None = None) -> WorkflowResult:
        """Execute every step once, in order, halting at the first failure."""

        run = run or WorkflowRun()
        run_token = run_id_ctx.set(run.run_id)
        ref_token = reference_id_ctx.set("")
        started = time.perf_counter()
        try:
            logger.info("workflow_started amount=%s currency=%s", request.amount, request.currency)
            try:
                user = await self._step(run, ProvisioningError.step, USER_CREATED, self.provisioner.provision_user())
                if self.config.momo_verify_api_user:
                    await self._step(
                        run,
                        UserLookupError.step,
                        USER_VERIFIED,
                        self.provisioner.fetch_user(user.user_id),
                    )
                api_key = await self._step(
                    run,
                    KeyRetrievalError.step,
                    KEY_RETRIEVED,
                    self.provisioner.fetch_api_key(user.user_id),
                )
                token = await self._step(
                    run,
                    TokenError.step,
                    TOKEN_ISSUED,
                    self.token_issuer.issue_token(user.user_id, api_key),
                )
                transaction = await self._step(
                    run,
                    PaymentError.step,
                    PAYMENT_SUBMITTED,
                    self.initiator.request_to_pay(request.payer_phone, request.amount, token.access_token),
                )
            except MomoError as exc:
                run.fail(exc)
                self._record_failure(exc)
                logger.warning("workflow_failed step=%s reason=%s error=%s", exc.step, exc.reason, exc)
                return PaymentFailed.from_error(exc, run_id=run.run_id)

            run.advance(DONE, reason="payment_accepted")
            workflow_runs_total.labels(service=self.config.service_name, outcome="success").inc()
            logger.info(
                "workflow_done reference_id=%s external_id=%s",
                transaction.reference_id,
                transaction.external_id,
            )
            return PaymentSucceeded(
                run_id=run.run_id,
                reference_id=transaction.reference_id,
                external_id=transaction.external_id,
                provider_response=transaction.provider_response,
            )
        finally:
            workflow_duration_seconds.labels(service=self.config.service_name, terminal_state=run.state).observe(
                max(0.0, time.perf_counter() - started)
            )
            reference_id_ctx.reset(ref_token)
            run_id_ctx.reset(run_token)

    def _record_failure(self, error: MomoError) -> None:
        workflow_runs_total.labels(service=self.config.service_name, outcome="failed").inc()
        workflow_step_failures_total.labels(
            service=self.config.service_name,
            step=error.step,
            reason=error.reason,
        ).inc()
