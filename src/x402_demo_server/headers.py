# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from x402.encoding import safe_base64_decode, safe_base64_encode

X_PAYMENT = "X-PAYMENT"
X_PAYMENT_RESPONSE = "X-PAYMENT-RESPONSE"

_MAX_X_PAYMENT = 16384


class HeaderError(ValueError):
    pass


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise HeaderError(msg)


def parse_x_payment(value: str) -> Dict[str, Any]:
    """Decode X-PAYMENT: base64(JSON payment payload).

    Only the envelope is checked here; scheme, signature and amount are left
    to the facilitator.
    """
    _require(len(value) <= _MAX_X_PAYMENT, "X-PAYMENT too large")
    try:
        payload = json.loads(safe_base64_decode(value.strip()))
    except ValueError as e:
        raise HeaderError(f"X-PAYMENT is not base64 JSON: {e}")
    _require(isinstance(payload, dict), "X-PAYMENT must decode to a JSON object")
    return payload


def encode_payment_response(settlement: Mapping[str, Any]) -> str:
    return safe_base64_encode(json.dumps(dict(settlement), separators=(",", ":")))

