#!/usr/bin/env python3
# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""
Check a running demo server.

Usage:
  python scripts/smoke_check.py [base_url]    (default http://localhost:3000)

Checks /health, /public, the 405 guards and that POST /test without payment
answers 402 with an x402 challenge.
"""

import asyncio
import json
import sys

import httpx


async def smoke_check(base_url: str) -> int:
    failures = 0
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        checks = [
            ("GET", "/health", 200),
            ("GET", "/public", 200),
            ("DELETE", "/health", 405),
            ("PUT", "/public", 405),
            ("GET", "/test", 405),
            ("POST", "/test", 402),
        ]
        for method, path, expected in checks:
            try:
                resp = await client.request(method, path)
            except httpx.HTTPError as e:
                print(f"❌ {method} {path}: {e}")
                failures += 1
                continue
            ok = resp.status_code == expected
            failures += 0 if ok else 1
            print(f"{'✅' if ok else '❌'} {method:6} {path:8} -> {resp.status_code} (expected {expected})")
            if path == "/test" and method == "POST" and resp.status_code == 402:
                accepts = resp.json().get("accepts") or [{}]
                print(json.dumps(accepts[0], indent=2))
    return 1 if failures else 0


if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:3000"
    sys.exit(asyncio.run(smoke_check(url)))
