# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import PaymentPolicyConfig, ServerSettings
from .facilitator import FacilitatorClient
from .gate import PaymentGate, PaymentRequiredError, PaywallConfig, PaymentVerifier, payment_required_handler
from .routes import build_router

logger = logging.getLogger(__name__)


def create_app(
    config: PaymentPolicyConfig,
    verifier: Optional[PaymentVerifier] = None,
    *,
    settings: Optional[ServerSettings] = None,
    paywall: Optional[PaywallConfig] = None,
) -> FastAPI:
    settings = settings or ServerSettings()
    owned_client: Optional[FacilitatorClient] = None
    if verifier is None:
        owned_client = FacilitatorClient(config.facilitator_url, timeout_s=config.max_timeout_seconds)
        verifier = owned_client

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owned_client is not None:
            await owned_client.aclose()

    app = FastAPI(
        title="x402 Demo Server",
        description="Demo API with one x402-paid endpoint",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    gate = PaymentGate(config, verifier, paywall)
    app.add_exception_handler(PaymentRequiredError, payment_required_handler)
    app.include_router(build_router(config, gate))

    # Added last so a static file can never shadow a route.
    app.mount("/", StaticFiles(directory=settings.public_dir), name="static")

    logger.info(f"App initialized (network={config.network}, facilitator={config.facilitator_url})")
    return app
