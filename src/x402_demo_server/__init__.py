# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""x402 Demo Server

A FastAPI app with one endpoint gated behind an x402 micropayment, verified and
settled by an external facilitator.

Usage:
    from x402_demo_server import create_app, load_config

    app = create_app(load_config(os.environ))
"""

__version__ = "0.1.0"

from .app import create_app
from .config import (
    REQUIRED_ENV_VARS,
    ConfigError,
    InvalidSettingsError,
    MissingSettingsError,
    PaymentPolicyConfig,
    ServerSettings,
    load_config,
    load_config_or_exit,
)
from .facilitator import FacilitatorClient, FacilitatorError
from .gate import (
    PaymentGate,
    PaymentRequiredError,
    PaymentVerifier,
    PaywallConfig,
    build_payment_requirements,
)
from .headers import HeaderError, parse_x_payment
from .routes import METHOD_TABLE, add_method_guard, build_router
from .schemas import PaymentDecision, PaymentRequirements, SettleResponse, VerifyResponse

__all__ = [
    "create_app",
    "REQUIRED_ENV_VARS",
    "ConfigError",
    "MissingSettingsError",
    "InvalidSettingsError",
    "PaymentPolicyConfig",
    "ServerSettings",
    "load_config",
    "load_config_or_exit",
    "FacilitatorClient",
    "FacilitatorError",
    "PaymentGate",
    "PaymentRequiredError",
    "PaymentVerifier",
    "PaywallConfig",
    "build_payment_requirements",
    "HeaderError",
    "parse_x_payment",
    "METHOD_TABLE",
    "add_method_guard",
    "build_router",
    "PaymentDecision",
    "PaymentRequirements",
    "SettleResponse",
    "VerifyResponse",
]
