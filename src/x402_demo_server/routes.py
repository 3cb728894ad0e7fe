# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Sequence, Tuple

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from .config import PaymentPolicyConfig
from .gate import PaymentGate
from .headers import X_PAYMENT_RESPONSE, encode_payment_response
from .schemas import SettleResponse

# Path -> allowed methods. Every other verb on these paths answers 405,
# except HEAD on GET paths, which is served like GET.
METHOD_TABLE: Dict[str, Tuple[str, ...]] = {
    "/public": ("GET",),
    "/health": ("GET",),
    "/test": ("POST",),
}

PROTECTED_ENDPOINT = "/test"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def method_not_allowed(path: str, allowed: Sequence[str]) -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content={
            "success": False,
            "error": "Method Not Allowed",
            "message": f"Only {', '.join(allowed)} method is allowed for {path} endpoint",
            "allowedMethods": list(allowed),
        },
        headers={"Allow": ", ".join(allowed)},
    )


def served_methods(allowed: Sequence[str]) -> List[str]:
    methods = list(allowed)
    if "GET" in methods and "HEAD" not in methods:
        methods.append("HEAD")
    return methods


def add_method_guard(router: APIRouter, path: str, allowed: Sequence[str]) -> None:
    """Register the 405 catch-all for ``path``.

    The guard is a plain route with no method list, so it matches every verb.
    It must be added after the path's real handler, which wins for the verbs
    it serves.
    """

    async def guard(request: Request) -> JSONResponse:
        return method_not_allowed(path, allowed)

    router.add_route(path, guard, include_in_schema=False, name=f"guard:{path}")


def build_router(config: PaymentPolicyConfig, gate: PaymentGate) -> APIRouter:
    router = APIRouter()

    async def favicon() -> RedirectResponse:
        return RedirectResponse("/favicon.svg", status_code=301)

    async def public_info() -> Dict[str, Any]:
        return {
            "success": True,
            "message": "This is a public endpoint, no payment required",
            "info": {
                "protectedEndpoint": PROTECTED_ENDPOINT,
                "requiredPayment": f"{config.payment_amount} {config.token_symbol} (smallest unit)",
                "paymentAmount": config.payment_amount,
                "network": config.network_name,
                "tokenAddress": config.token_address,
                "tokenSymbol": config.token_symbol,
            },
        }

    async def health() -> Dict[str, Any]:
        return {"status": "ok", "timestamp": utc_timestamp()}

    async def paid_test(response: Response, settlement: SettleResponse = Depends(gate)) -> Dict[str, Any]:
        response.headers[X_PAYMENT_RESPONSE] = encode_payment_response(settlement.model_dump(exclude_none=True))
        return {
            "success": True,
            "message": "Test successful!",
            "data": {"tested": True, "timestamp": utc_timestamp()},
        }

    router.add_api_route("/favicon.ico", favicon, methods=served_methods(["GET"]), include_in_schema=False)

    handlers: Dict[str, Callable[..., Any]] = {
        "/public": public_info,
        "/health": health,
        PROTECTED_ENDPOINT: paid_test,
    }
    for path, allowed in METHOD_TABLE.items():
        router.add_api_route(path, handlers[path], methods=served_methods(allowed))
        add_method_guard(router, path, allowed)
    return router
