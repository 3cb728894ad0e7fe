# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from opentelemetry import trace
from pydantic import ValidationError

from .schemas import (
    X402_VERSION,
    PaymentDecision,
    PaymentRequirements,
    SettleResponse,
    VerifyResponse,
)

logger = logging.getLogger(__name__)
_tracer = trace.get_tracer("x402_demo_server.facilitator")

AuthHeadersFactory = Callable[[], Awaitable[Dict[str, Dict[str, str]]]]


class FacilitatorError(RuntimeError):
    pass


class FacilitatorClient:
    """Talks to an x402 facilitator's /verify and /settle endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 15.0,
        create_auth_headers: Optional[AuthHeadersFactory] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url:
            raise ValueError("base_url required for FacilitatorClient")
        base = base_url.rstrip("/")
        self.verify_url = f"{base}/verify"
        self.settle_url = f"{base}/settle"
        self.create_auth_headers = create_auth_headers
        self.http = httpx.AsyncClient(timeout=timeout_s, follow_redirects=True, transport=transport)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _auth_headers(self, kind: str) -> Dict[str, str]:
        if self.create_auth_headers is None:
            return {}
        headers = await self.create_auth_headers()
        return dict(headers.get(kind) or {})

    async def _post(self, kind: str, url: str, body: Dict[str, Any]) -> Dict[str, Any]:
        with _tracer.start_as_current_span(f"facilitator.{kind}") as span:
            span.set_attribute("http.url", url)
            r = await self.http.post(url, json=body, headers=await self._auth_headers(kind))
            span.set_attribute("http.status_code", r.status_code)
        if not r.is_success:
            raise FacilitatorError(f"facilitator /{kind} returned {r.status_code}: {r.text}")
        if (r.headers.get("content-type") or "").split(";", 1)[0].strip().lower() != "application/json":
            raise FacilitatorError(f"invalid content-type from facilitator /{kind}")
        try:
            return r.json()
        except ValueError as e:
            raise FacilitatorError(f"invalid JSON from facilitator /{kind}: {e}")

    def _request_body(
        self, payment_payload: Dict[str, Any], requirements: PaymentRequirements, payment_header: str
    ) -> Dict[str, Any]:
        return {
            "x402Version": X402_VERSION,
            "paymentPayload": payment_payload,
            "paymentRequirements": requirements.model_dump(exclude_none=True),
            "paymentHeader": payment_header,
        }

    async def verify(
        self, payment_payload: Dict[str, Any], requirements: PaymentRequirements, *, payment_header: str
    ) -> VerifyResponse:
        data = await self._post("verify", self.verify_url, self._request_body(payment_payload, requirements, payment_header))
        try:
            return VerifyResponse(**data)
        except (TypeError, ValidationError) as e:
            raise FacilitatorError(f"Invalid verify response: {e}")

    async def settle(
        self, payment_payload: Dict[str, Any], requirements: PaymentRequirements, *, payment_header: str
    ) -> SettleResponse:
        data = await self._post("settle", self.settle_url, self._request_body(payment_payload, requirements, payment_header))
        try:
            return SettleResponse(**data)
        except (TypeError, ValidationError) as e:
            raise FacilitatorError(f"Invalid settle response: {e}")

    async def authorize(
        self, payment_payload: Dict[str, Any], requirements: PaymentRequirements, *, payment_header: str
    ) -> PaymentDecision:
        v = await self.verify(payment_payload, requirements, payment_header=payment_header)
        if not v.isValid:
            logger.info(f"[FACILITATOR] verify rejected payer={v.payer} reason={v.invalidReason}")
            return PaymentDecision(allowed=False, reason=v.invalidReason or "verification failed")
        s = await self.settle(payment_payload, requirements, payment_header=payment_header)
        if not s.success:
            logger.info(f"[FACILITATOR] settle failed payer={s.payer} reason={s.errorReason}")
            return PaymentDecision(allowed=False, reason=s.errorReason or "settlement failed", settlement=s)
        logger.info(f"[FACILITATOR] settled payer={s.payer} tx={s.transaction} network={s.network}")
        return PaymentDecision(allowed=True, settlement=s)
