#!/usr/bin/env python3
"""Runtime configuration: RPC endpoints, vesting manager address, wallet path."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_RPC_URL = "https://ethereum-rpc.publicnode.com"
DEFAULT_VESTING_MANAGER_ADDRESS = "0x943007c14606446BD433426b1E2363309d4C9F0f"
DEFAULT_WALLET_PATH = Path.home() / ".vestclaim" / "wallet.json"
DEFAULT_RPC_TIMEOUT = 10.0


@dataclass(frozen=True)
class VestingConfig:
    rpc_urls: Tuple[str, ...] = (DEFAULT_RPC_URL,)
    vesting_manager_address: str = DEFAULT_VESTING_MANAGER_ADDRESS
    wallet_path: Path = DEFAULT_WALLET_PATH
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    # None waits for the receipt as long as the network takes
    receipt_timeout: Optional[float] = None
    log_level: str = "INFO"

    @property
    def rpc_url(self) -> str:
        return self.rpc_urls[0]

    def with_rpc_url(self, rpc_url: Optional[str]) -> "VestingConfig":
        if not rpc_url:
            return self
        return replace(self, rpc_urls=_split_urls(rpc_url))


def _split_urls(value: str) -> Tuple[str, ...]:
    urls = tuple(u.strip() for u in value.split(",") if u.strip())
    return urls or (DEFAULT_RPC_URL,)


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


def load_config(env_file: Optional[str] = None) -> VestingConfig:
    """Build a config from the environment, after loading an optional .env file."""
    load_dotenv(env_file or os.getenv("VESTCLAIM_ENV_FILE") or None)

    rpc_timeout = _optional_float(os.getenv("RPC_TIMEOUT"))
    return VestingConfig(
        rpc_urls=_split_urls(os.getenv("RPC_URL", DEFAULT_RPC_URL)),
        vesting_manager_address=os.getenv(
            "VESTING_MANAGER_ADDRESS", DEFAULT_VESTING_MANAGER_ADDRESS
        ),
        wallet_path=Path(
            os.getenv("VESTCLAIM_WALLET_PATH", str(DEFAULT_WALLET_PATH))
        ).expanduser(),
        rpc_timeout=DEFAULT_RPC_TIMEOUT if rpc_timeout is None else rpc_timeout,
        receipt_timeout=_optional_float(os.getenv("RECEIPT_TIMEOUT")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
