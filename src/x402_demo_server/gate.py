# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""Payment gate for the paid route.

The gate only assembles x402 payment requirements from the policy config and
relays the verifier's verdict. Signature checks and settlement belong to the
verifier (by default the facilitator).
"""

import html
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Protocol

import httpx
from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse
from x402.paywall import is_browser_request

from .config import PaymentPolicyConfig
from .facilitator import FacilitatorError
from .headers import X_PAYMENT, HeaderError, parse_x_payment
from .schemas import X402_VERSION, PaymentDecision, PaymentRequirements, SettleResponse

logger = logging.getLogger(__name__)


class PaymentVerifier(Protocol):
    async def authorize(
        self, payment_payload: Dict[str, Any], requirements: PaymentRequirements, *, payment_header: str
    ) -> PaymentDecision: ...


@dataclass(frozen=True)
class PaywallConfig:
    app_name: str = "x402Bscan"
    app_logo: str = "/logo.svg"


class PaymentRequiredError(Exception):
    def __init__(self, error: str, requirements: PaymentRequirements, html_page: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.requirements = requirements
        self.html_page = html_page

    def body(self) -> Dict[str, Any]:
        return {
            "x402Version": X402_VERSION,
            "error": self.error,
            "accepts": [self.requirements.model_dump(exclude_none=True)],
        }


def build_payment_requirements(config: PaymentPolicyConfig, resource: str) -> PaymentRequirements:
    extra: Dict[str, Any] = {
        "name": config.token_name,
        "version": config.token_version,
        "decimals": config.token_decimals,
        "symbol": config.token_symbol,
        "authorizationType": config.authorization_type,
    }
    if config.facilitator_contract:
        extra["facilitatorContract"] = config.facilitator_contract
    return PaymentRequirements(
        network=config.network,
        maxAmountRequired=config.payment_amount,
        resource=resource,
        description=config.description,
        mimeType="application/json",
        payTo=config.payment_address,
        maxTimeoutSeconds=config.max_timeout_seconds,
        asset=config.token_address,
        extra=extra,
    )


def display_amount(amount: str, decimals: int) -> str:
    try:
        value = Decimal(amount).scaleb(-decimals)
    except InvalidOperation:
        return amount
    text = format(value, "f")
    return text.rstrip("0").rstrip(".") if "." in text else text


_PAYWALL_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{app_name} - Payment Required</title>
</head>
<body>
<main>
<img src="{app_logo}" alt="{app_name}" width="64" height="64">
<h1>Payment Required</h1>
<p>{description}</p>
<p>Price: <strong>{price} {symbol}</strong> on {network_name}</p>
<p class="error">{error}</p>
<p>Send this request from an x402-capable client with an X-PAYMENT header.</p>
</main>
</body>
</html>
"""


def render_paywall(
    config: PaymentPolicyConfig, paywall: PaywallConfig, requirements: PaymentRequirements, error: str
) -> str:
    return _PAYWALL_TEMPLATE.format(
        app_name=html.escape(paywall.app_name),
        app_logo=html.escape(paywall.app_logo),
        description=html.escape(requirements.description),
        price=html.escape(display_amount(config.payment_amount, config.token_decimals)),
        symbol=html.escape(config.token_symbol),
        network_name=html.escape(config.network_name),
        error=html.escape(error),
    )


class PaymentGate:
    """FastAPI dependency that admits a request only after payment settles."""

    def __init__(
        self,
        config: PaymentPolicyConfig,
        verifier: PaymentVerifier,
        paywall: Optional[PaywallConfig] = None,
    ):
        self.config = config
        self.verifier = verifier
        self.paywall = paywall or PaywallConfig()

    def _deny(self, request: Request, requirements: PaymentRequirements, error: str) -> PaymentRequiredError:
        page = None
        if is_browser_request(dict(request.headers)):
            page = render_paywall(self.config, self.paywall, requirements, error)
        return PaymentRequiredError(error, requirements, html_page=page)

    async def __call__(self, request: Request) -> SettleResponse:
        requirements = build_payment_requirements(self.config, str(request.url))
        raw = request.headers.get(X_PAYMENT)
        if not raw:
            raise self._deny(request, requirements, "X-PAYMENT header is required")
        try:
            payload = parse_x_payment(raw)
        except HeaderError as e:
            logger.info(f"[GATE] rejected malformed X-PAYMENT: {e}")
            raise self._deny(request, requirements, "Invalid or malformed payment header")

        try:
            decision = await self.verifier.authorize(payload, requirements, payment_header=raw)
        except (FacilitatorError, httpx.HTTPError) as e:
            logger.warning(f"[GATE] facilitator call failed: {e!r}")
            raise self._deny(request, requirements, str(e) or e.__class__.__name__)

        if not decision.allowed or decision.settlement is None:
            raise self._deny(request, requirements, decision.reason or "Payment was not accepted")
        return decision.settlement


async def payment_required_handler(request: Request, exc: PaymentRequiredError):
    if exc.html_page is not None:
        return HTMLResponse(exc.html_page, status_code=402)
    return JSONResponse(status_code=402, content=exc.body())
