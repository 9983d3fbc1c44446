#!/usr/bin/env python3
from vestclaim.claim import ClaimService
from vestclaim.config import VestingConfig, load_config
from vestclaim.query import VestingQueryService
from vestclaim.vesting import (
    build_services,
    claim_vested_tokens,
    get_all_vesting_info,
    get_vesting_info,
)

__all__ = [
    "ClaimService",
    "VestingConfig",
    "VestingQueryService",
    "build_services",
    "claim_vested_tokens",
    "get_all_vesting_info",
    "get_vesting_info",
    "load_config",
]
