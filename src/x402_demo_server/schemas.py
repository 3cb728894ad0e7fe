# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""x402 v1 wire records exchanged with clients and the facilitator."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

X402_VERSION = 1


class PaymentRequirements(BaseModel):
    scheme: str = "exact"
    network: str
    maxAmountRequired: str
    resource: str
    description: str = ""
    mimeType: str = "application/json"
    payTo: str
    maxTimeoutSeconds: int
    asset: str
    outputSchema: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


class VerifyResponse(BaseModel):
    isValid: bool
    payer: str = ""
    invalidReason: Optional[str] = None


class SettleResponse(BaseModel):
    success: bool
    payer: str = ""
    transaction: Optional[str] = None
    network: Optional[str] = None
    errorReason: Optional[str] = None


class PaymentDecision(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    settlement: Optional[SettleResponse] = None
