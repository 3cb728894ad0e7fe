# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

PERMIT_AUTHORIZATION = "permit"

REQUIRED_ENV_VARS = [
    "PAYMENT_ADDRESS",
    "TOKEN_ADDRESS",
    "TOKEN_DECIMALS",
    "TOKEN_SYMBOL",
    "TOKEN_NAME",
    "TOKEN_VERSION",
    "PAYMENT_AMOUNT",
    "NETWORK",
    "NETWORK_NAME",
    "AUTHORIZATION_TYPE",
    "MAX_TIMEOUT_SECONDS",
    "FACILITATOR_URL",
]

_INTEGER = re.compile(r"[+-]?[0-9]+")

DEFAULT_PUBLIC_DIR = Path(__file__).resolve().parent / "public"


class ConfigError(ValueError):
    def diagnostic(self) -> List[str]:
        return [f"ERROR: {self}"]


class MissingSettingsError(ConfigError):
    def __init__(self, missing: List[str], reason: Optional[str] = None):
        self.missing = list(missing)
        self.reason = reason
        super().__init__(reason or f"Missing required environment variables: {', '.join(self.missing)}")

    def diagnostic(self) -> List[str]:
        if self.reason:
            return [
                f"ERROR: {self.reason}",
                f"Please set {', '.join(self.missing)} in your .env file",
            ]
        lines = ["ERROR: Missing required environment variables:"]
        lines.extend(f"  - {name}" for name in self.missing)
        lines.append("")
        lines.append("Please set all required variables in your .env file")
        lines.append("See .env.example for reference")
        return lines


class InvalidSettingsError(ConfigError):
    def __init__(self, invalid: Dict[str, str]):
        self.invalid = dict(invalid)
        super().__init__(
            "Invalid environment variables: "
            + ", ".join(f"{k} ({v})" for k, v in self.invalid.items())
        )

    def diagnostic(self) -> List[str]:
        lines = ["ERROR: Invalid environment variables:"]
        lines.extend(f"  - {name}: {reason}" for name, reason in self.invalid.items())
        return lines


class PaymentPolicyConfig(BaseModel):
    """What a client must pay to reach the protected route.

    Built once at start-up by :func:`load_config` and shared read-only by the
    router and the payment gate.
    """

    model_config = ConfigDict(frozen=True)

    payment_address: str
    token_address: str
    token_decimals: int = Field(ge=0)
    token_symbol: str
    token_name: str
    token_version: str
    payment_amount: str
    network: str
    network_name: str
    authorization_type: str
    max_timeout_seconds: int = Field(gt=0)
    facilitator_url: str
    facilitator_contract: Optional[str] = None

    @property
    def description(self) -> str:
        return f"Test access - {self.payment_amount} {self.token_symbol}"


class ServerSettings(BaseModel):
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    public_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("PUBLIC_DIR") or DEFAULT_PUBLIC_DIR)
    )
    otel_endpoint: Optional[str] = Field(default_factory=lambda: os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None)
    service_name: str = Field(default_factory=lambda: os.getenv("OTEL_SERVICE_NAME", "x402-demo-server"))
    otel_console: bool = Field(
        default_factory=lambda: os.getenv("OTEL_CONSOLE_EXPORTER", "0").lower() in {"1", "true", "yes"}
    )


def _parse_int(raw: str, *, name: str, minimum: int, invalid: Dict[str, str]) -> int:
    text = raw.strip()
    if not _INTEGER.fullmatch(text):
        invalid[name] = f"expected an integer, got {raw!r}"
        return minimum
    value = int(text)
    if value < minimum:
        invalid[name] = f"must be >= {minimum}, got {value}"
    return value


def load_config(environ: Mapping[str, str]) -> PaymentPolicyConfig:
    """Read the payment policy from ``environ``.

    Empty values count as missing. Every missing name is reported at once.
    """
    missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name)]
    if missing:
        raise MissingSettingsError(missing)

    facilitator_contract = environ.get("FACILITATOR_CONTRACT") or None
    if environ["AUTHORIZATION_TYPE"] == PERMIT_AUTHORIZATION and not facilitator_contract:
        raise MissingSettingsError(
            ["FACILITATOR_CONTRACT"],
            reason="FACILITATOR_CONTRACT is required when AUTHORIZATION_TYPE is 'permit'",
        )

    invalid: Dict[str, str] = {}
    decimals = _parse_int(environ["TOKEN_DECIMALS"], name="TOKEN_DECIMALS", minimum=0, invalid=invalid)
    timeout = _parse_int(environ["MAX_TIMEOUT_SECONDS"], name="MAX_TIMEOUT_SECONDS", minimum=1, invalid=invalid)
    if invalid:
        raise InvalidSettingsError(invalid)

    return PaymentPolicyConfig(
        payment_address=environ["PAYMENT_ADDRESS"],
        token_address=environ["TOKEN_ADDRESS"],
        token_decimals=decimals,
        token_symbol=environ["TOKEN_SYMBOL"],
        token_name=environ["TOKEN_NAME"],
        token_version=environ["TOKEN_VERSION"],
        payment_amount=environ["PAYMENT_AMOUNT"],
        network=environ["NETWORK"],
        network_name=environ["NETWORK_NAME"],
        authorization_type=environ["AUTHORIZATION_TYPE"],
        max_timeout_seconds=timeout,
        facilitator_url=environ["FACILITATOR_URL"],
        facilitator_contract=facilitator_contract,
    )


def load_config_or_exit(environ: Mapping[str, str]) -> PaymentPolicyConfig:
    try:
        return load_config(environ)
    except ConfigError as e:
        for line in e.diagnostic():
            print(line, file=sys.stderr)
        sys.exit(1)
