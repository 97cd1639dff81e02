"""Run one provisioning-and-payment workflow against the configured provider.

Reads provider settings from the environment (`MOMO_*`), prints the workflow
result and, with `--poll`, queries the transaction status a few times.
"""

import argparse
import asyncio
import json

from momopay.common.config import settings
from momopay.common.errors import MomoError
from momopay.common.logging import configure_logging
from momopay.services.api_gateway.dependencies import ProviderServices
from momopay.services.provider.client import build_http_client


async def run(phone: str, amount: str, poll: int, interval: float) -> int:
    """Execute the workflow and optionally poll status; return an exit code."""

    async with build_http_client(settings) as http:
        services = ProviderServices.build(settings, http)
        result = await services.workflow.initiate(phone, amount)
        print(json.dumps(result.model_dump(by_alias=True), indent=2, default=str))
        if not result.success:
            return 1

        for attempt in range(1, poll + 1):
            await asyncio.sleep(interval)
            try:
                status = await services.reconciler.get_status(result.reference_id)
            except MomoError as exc:
                print(f"poll={attempt} error={exc.user_message}")
                return 2
            print(f"poll={attempt} status={json.dumps(status, default=str)}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--phone", required=True)
    parser.add_argument("--amount", required=True)
    parser.add_argument("--poll", type=int, default=0, help="number of status polls after submission")
    parser.add_argument("--interval", type=float, default=2.0)
    args = parser.parse_args()
    configure_logging()
    raise SystemExit(asyncio.run(run(args.phone, args.amount, args.poll, args.interval)))
