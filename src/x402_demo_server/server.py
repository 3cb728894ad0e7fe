# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""
Entry point for the x402 demo server.

Env:
  - the payment policy variables listed in .env.example (all required)
  - PORT (default: 3000), HOST (default: 0.0.0.0), LOG_LEVEL (default: INFO)
  - OTEL_EXPORTER_OTLP_ENDPOINT to export traces
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from .app import create_app
from .config import PaymentPolicyConfig, ServerSettings, load_config_or_exit

logger = logging.getLogger("x402_demo_server")


def startup_banner(config: PaymentPolicyConfig, settings: ServerSettings) -> str:
    rule = "=" * 70
    lines = [
        "",
        rule,
        "x402 Demo Server Started",
        rule,
        "",
        f"Server URL: http://localhost:{settings.port}",
        "",
        "Network Configuration:",
        f"  Network: {config.network_name} ({config.network})",
        f"  Token: {config.token_name} ({config.token_symbol})",
        f"  Token Address: {config.token_address}",
        f"  Token Decimals: {config.token_decimals}",
        "",
        "Payment Configuration:",
        f"  Payment Address: {config.payment_address}",
        f"  Required Amount: {config.payment_amount} (smallest unit)",
        f"  Authorization Type: {config.authorization_type}",
        f"  Facilitator Contract: {config.facilitator_contract}",
        f"  Timeout: {config.max_timeout_seconds} seconds",
        "",
        "Available Endpoints:",
        "  GET  /health       - Health check",
        "  GET  /public       - Public endpoint (no payment)",
        "  POST /test         - Protected endpoint (requires payment)",
        "",
        rule,
    ]
    return "\n".join(lines)


def main() -> None:
    load_dotenv()
    settings = ServerSettings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    config = load_config_or_exit(os.environ)

    if settings.otel_endpoint:
        from .otel import setup_tracing

        setup_tracing(settings)
        logger.info(f"Exporting traces as {settings.service_name} to {settings.otel_endpoint}")

    app = create_app(config, settings=settings)
    logger.info(startup_banner(config, settings))

    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
