"""Per-process wiring of provider components around one HTTP pool."""

from dataclasses import dataclass

import httpx

from momopay.common.config import CommonSettings
from momopay.services.orchestrator.workflow import PaymentWorkflow
from momopay.services.provider.client import MomoClient
from momopay.services.provider.collection import PaymentInitiator, StatusReconciler
from momopay.services.provider.provisioning import CredentialProvisioner
from momopay.services.provider.token_issuer import TokenIssuer


@dataclass(frozen=True)
class ProviderServices:
    """Stateless components shared by all concurrent requests."""

    client: MomoClient
    provisioner: CredentialProvisioner
    token_issuer: TokenIssuer
    initiator: PaymentInitiator
    reconciler: StatusReconciler
    workflow: PaymentWorkflow

    @classmethod
    def build(cls, config: CommonSettings, http: httpx.AsyncClient) -> "ProviderServices":
        client = MomoClient(config, http)
        provisioner = CredentialProvisioner(client)
        token_issuer = TokenIssuer(client)
        initiator = PaymentInitiator(client)
        return cls(
            client=client,
            provisioner=provisioner,
            token_issuer=token_issuer,
            initiator=initiator,
            reconciler=StatusReconciler(client),
            workflow=PaymentWorkflow(config, provisioner, token_issuer, initiator),
        )
