"""Shared fixtures: settings, an in-process fake MoMo provider, wired services."""

import base64
import json
import os
from urllib.parse import unquote
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio

os.environ.setdefault("MOMO_SUBSCRIPTION_KEY", "test-subscription-key")
os.environ.setdefault("MOMO_BASE_URL", "https://momo.test")

from momopay.common.config import CommonSettings  # noqa: E402
from momopay.services.api_gateway.dependencies import ProviderServices  # noqa: E402
from momopay.services.provider.client import build_http_client  # noqa: E402


class FakeMomoProvider:
    """Minimal stateful stand-in for the MoMo sandbox.

    Records every request as `(step, request)` and lets a test force one step
    to answer with a status code or raise a transport exception.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, httpx.Request]] = []
        self.users: dict[str, dict] = {}
        self.api_keys: dict[str, str] = {}
        self.tokens: set[str] = set()
        self.transactions: dict[str, dict] = {}
        self.failures: dict[str, int | Exception] = {}

    @property
    def steps(self) -> list[str]:
        return [step for step, _ in self.calls]

    def requests_for(self, step: str) -> list[httpx.Request]:
        return [request for name, request in self.calls if name == step]

    def fail(self, step: str, outcome: int | Exception) -> None:
        self.failures[step] = outcome

    @staticmethod
    def path_ids(request: httpx.Request) -> list[str]:
        """Decoded path segments, split before decoding so encoded ids stay whole."""
        path = request.url.raw_path.split(b"?", 1)[0].decode("ascii")
        return [unquote(segment) for segment in path.split("/")]

    @staticmethod
    def step_of(request: httpx.Request) -> str:
        path = request.url.path
        if path == "/v1_0/apiuser":
            return "create_api_user"
        if path.startswith("/v1_0/apiuser/") and path.endswith("/apikey"):
            return "retrieve_api_key"
        if path.startswith("/v1_0/apiuser/"):
            return "get_api_user"
        if path == "/collection/token/":
            return "generate_token"
        if path == "/collection/v1_0/requesttopay":
            return "request_to_pay"
        if path.startswith("/collection/v1_0/requesttopay/"):
            return "payment_status"
        return "unknown"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        step = self.step_of(request)
        self.calls.append((step, request))
        if request.headers.get("Ocp-Apim-Subscription-Key") != "test-subscription-key":
            return httpx.Response(401, json={"message": "Access denied due to invalid subscription key."})

        forced = self.failures.get(step)
        if isinstance(forced, Exception):
            raise forced
        if forced is not None:
            return httpx.Response(forced, json={"code": "FORCED", "message": f"forced failure at {step}"})

        handler = getattr(self, f"_{step}", None)
        if handler is None:
            return httpx.Response(404, json={"code": "NOT_FOUND"})
        return handler(request)

    def _create_api_user(self, request: httpx.Request) -> httpx.Response:
        user_id = request.headers["X-Reference-Id"]
        body = json.loads(request.content)
        self.users[user_id] = {"providerCallbackHost": body["providerCallbackHost"], "targetEnvironment": "sandbox"}
        return httpx.Response(201)

    def _get_api_user(self, request: httpx.Request) -> httpx.Response:
        user_id = self.path_ids(request)[-1]
        if user_id not in self.users:
            return httpx.Response(404, json={"code": "RESOURCE_NOT_FOUND"})
        return httpx.Response(200, json=self.users[user_id])

    def _retrieve_api_key(self, request: httpx.Request) -> httpx.Response:
        user_id = self.path_ids(request)[3]
        if user_id not in self.users:
            return httpx.Response(404, json={"code": "RESOURCE_NOT_FOUND"})
        api_key = uuid4().hex
        self.api_keys[user_id] = api_key
        return httpx.Response(201, json={"apiKey": api_key})

    def _generate_token(self, request: httpx.Request) -> httpx.Response:
        scheme, _, encoded = request.headers.get("Authorization", "").partition(" ")
        if scheme != "Basic":
            return httpx.Response(401, json={"error": "invalid_client"})
        user_id, _, api_key = base64.b64decode(encoded).decode("utf-8").partition(":")
        if self.api_keys.get(user_id) != api_key:
            return httpx.Response(401, json={"error": "invalid_client"})
        token = f"tok-{uuid4().hex}"
        self.tokens.add(token)
        return httpx.Response(200, json={"access_token": token, "token_type": "access_token", "expires_in": 3600})

    def _request_to_pay(self, request: httpx.Request) -> httpx.Response:
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme != "Bearer" or token not in self.tokens:
            return httpx.Response(401, json={"code": "UNAUTHORIZED"})
        body = json.loads(request.content)
        self.transactions[request.headers["X-Reference-Id"]] = body
        return httpx.Response(202)

    def _payment_status(self, request: httpx.Request) -> httpx.Response:
        reference_id = self.path_ids(request)[-1]
        body = self.transactions.get(reference_id)
        if body is None:
            return httpx.Response(404, json={"code": "RESOURCE_NOT_FOUND"})
        return httpx.Response(
            200,
            json={
                "amount": body["amount"],
                "currency": body["currency"],
                "externalId": body["externalId"],
                "payer": body["payer"],
                "status": "SUCCESSFUL",
            },
        )


@pytest.fixture
def test_settings() -> CommonSettings:
    return CommonSettings(
        service_name="momopay-test",
        momo_base_url="https://momo.test",
        momo_subscription_key="test-subscription-key",
        momo_callback_host="https://callback.test",
        momo_currency="EUR",
        momo_request_timeout_seconds=2.0,
    )


@pytest.fixture
def provider() -> FakeMomoProvider:
    return FakeMomoProvider()


@pytest_asyncio.fixture
async def http_client(test_settings, provider):
    async with build_http_client(test_settings, transport=httpx.MockTransport(provider)) as client:
        yield client


@pytest.fixture
def services(test_settings, http_client) -> ProviderServices:
    return ProviderServices.build(test_settings, http_client)
