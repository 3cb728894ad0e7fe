#!/usr/bin/env python3
# Copyright 2025 t54 labs
# SPDX-License-Identifier: Apache-2.0
"""
Development runner for the x402 demo server.

Reads .env from the working directory; see .env.example.
"""

import os
import sys

repo_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(repo_root, "src"))

from x402_demo_server.server import main


if __name__ == "__main__":
    main()
