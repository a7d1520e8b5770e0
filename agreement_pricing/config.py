#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
config.py

Configuration constants and defaults for the agreement pricing engine.

Key idea: remote config first, static defaults always
-----------------------------------------------------
Every service ships a complete static rate table (see service_models/).
The admin backend can publish an "active" config per service that overrides
any subset of those rates. The engine never depends on that backend being up:
when the fetch fails, the static table is used and the quote is flagged as
"using defaults".
"""

import os  # Standard library: access environment variables (os.getenv).

# ---------------------------------------------------------------------
# Service config API
# ---------------------------------------------------------------------
# API_BASE_URL:
# - Root of the admin backend that serves service configs.
# - Active config:  {API_BASE_URL}/api/service-configs/active?serviceId=<id>
# - All pricing:    {API_BASE_URL}/api/service-configs/pricing
API_BASE_URL = os.getenv("AGREEMENT_PRICING_API_URL", "http://localhost:5000").rstrip("/")

ACTIVE_CONFIG_PATH = "/api/service-configs/active"
ALL_PRICING_PATH = "/api/service-configs/pricing"

# API_TOKEN:
# - Optional bearer token sent with every config request.
API_TOKEN = os.getenv("AGREEMENT_PRICING_API_TOKEN", "").strip()

# REQUEST_TIMEOUT:
# - Total seconds for one config request (connect timeout is capped at 10s).
REQUEST_TIMEOUT = float(os.getenv("AGREEMENT_PRICING_TIMEOUT", "15"))

# ---------------------------------------------------------------------
# Contract length
# ---------------------------------------------------------------------
# Agreements run between 2 and 36 months; 12 is the default term and also
# the value used when a contract length cannot be parsed.
MIN_CONTRACT_MONTHS = 2
MAX_CONTRACT_MONTHS = 36
DEFAULT_CONTRACT_MONTHS = int(os.getenv("AGREEMENT_PRICING_DEFAULT_MONTHS", "12"))

# ---------------------------------------------------------------------
# Cache file (last known remote configs)
# ---------------------------------------------------------------------
# CONFIG_CACHE_FILE:
# - Local JSON file with the last successfully fetched config per service.
# - Used when the backend is unreachable, before falling back to defaults.
CONFIG_CACHE_FILE = os.getenv("AGREEMENT_PRICING_CACHE_FILE", "service_config_cache.json")

# ---------------------------------------------------------------------
# Tracing / change log
# ---------------------------------------------------------------------
# TRACE_ENABLED:
# - JSONL trace of each CLI run (phases, resolved configs, quotes).
# - Disable with AGREEMENT_PRICING_TRACE=0.
TRACE_ENABLED = os.getenv("AGREEMENT_PRICING_TRACE", "1").strip().lower() not in {"0", "false", "no"}

# CHANGE_LOG_FILE:
# - JSONL file receiving override change entries (audit sink).
CHANGE_LOG_FILE = os.getenv("AGREEMENT_PRICING_CHANGE_LOG", "").strip()

# ---------------------------------------------------------------------
# Currency (display only)
# ---------------------------------------------------------------------
DEFAULT_CURRENCY = os.getenv("AGREEMENT_PRICING_CURRENCY", "USD")
