# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
import base64
import json
import os
import sys
from typing import Any, Dict, List, Optional

import pytest


def _add_src_to_syspath() -> None:
    root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    for path in (os.path.join(root, "src"), os.path.dirname(os.path.abspath(__file__))):
        if path not in sys.path:
            sys.path.insert(0, path)


_add_src_to_syspath()


# Import after adding to syspath
from fastapi.testclient import TestClient

from x402_demo_server import create_app, load_config
from x402_demo_server.schemas import PaymentDecision, PaymentRequirements, SettleResponse

PAYER = "0x" + "b" * 40
TX_HASH = "0x" + "f" * 64


class StubVerifier:
    """In-process stand-in for the facilitator."""

    def __init__(self, decision: Optional[PaymentDecision] = None, exc: Optional[Exception] = None):
        self.decision = decision or PaymentDecision(
            allowed=True,
            settlement=SettleResponse(success=True, payer=PAYER, transaction=TX_HASH, network="bsc"),
        )
        self.exc = exc
        self.calls: List[Dict[str, Any]] = []

    async def authorize(
        self, payment_payload: Dict[str, Any], requirements: PaymentRequirements, *, payment_header: str
    ) -> PaymentDecision:
        self.calls.append(
            {"payload": payment_payload, "requirements": requirements, "header": payment_header}
        )
        if self.exc is not None:
            raise self.exc
        return self.decision


@pytest.fixture
def policy_env() -> Dict[str, str]:
    """A complete, valid payment policy environment."""
    return {
        "PAYMENT_ADDRESS": "0x" + "c" * 40,
        "TOKEN_ADDRESS": "0x8d0D000Ee44948FC98c9B98A4FA4921476f08B0d",
        "TOKEN_DECIMALS": "18",
        "TOKEN_SYMBOL": "USD1",
        "TOKEN_NAME": "World Liberty Financial USD",
        "TOKEN_VERSION": "1",
        "PAYMENT_AMOUNT": "1000000000000000000",
        "NETWORK": "bsc",
        "NETWORK_NAME": "BNB Smart Chain",
        "AUTHORIZATION_TYPE": "permit",
        "MAX_TIMEOUT_SECONDS": "300",
        "FACILITATOR_URL": "http://facilitator.test",
        "FACILITATOR_CONTRACT": "0x" + "e" * 40,
    }


@pytest.fixture
def test_env(monkeypatch, policy_env) -> Dict[str, str]:
    """Export the policy environment into os.environ."""
    for name, value in policy_env.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("PUBLIC_DIR", raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    return policy_env


@pytest.fixture
def policy_config(policy_env):
    return load_config(policy_env)


@pytest.fixture
def stub_verifier() -> StubVerifier:
    return StubVerifier()


@pytest.fixture
def app(policy_config, stub_verifier):
    return create_app(policy_config, verifier=stub_verifier)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def sample_payment_payload() -> Dict[str, Any]:
    """Sample x402 v1 payment payload for testing."""
    return {
        "x402Version": 1,
        "scheme": "exact",
        "network": "bsc",
        "payload": {
            "signature": "0x" + "d" * 130,
            "authorization": {
                "from": PAYER,
                "to": "0x" + "c" * 40,
                "value": "1000000000000000000",
                "validAfter": "0",
                "validBefore": "9999999999",
                "nonce": "0x" + "0" * 64,
            },
        },
    }


@pytest.fixture
def x_payment(sample_payment_payload) -> str:
    return base64.b64encode(json.dumps(sample_payment_payload).encode()).decode()
