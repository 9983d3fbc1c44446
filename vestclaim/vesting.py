#!/usr/bin/env python3
"""Entry points wired to the default collaborators (keystore wallet + web3 ledger)."""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

from vestclaim.claim import ClaimService
from vestclaim.config import VestingConfig, load_config
from vestclaim.ledger import Web3LedgerClient
from vestclaim.query import VestingQueryService
from vestclaim.wallet import KeystoreWallet


def build_services(config: VestingConfig) -> Tuple[VestingQueryService, ClaimService]:
    wallet = KeystoreWallet(config.wallet_path)
    ledger = Web3LedgerClient(config)
    return (
        VestingQueryService(wallet, ledger, config),
        ClaimService(wallet, ledger, config),
    )


def _resolve(config: Optional[VestingConfig], rpc_url: Optional[str]) -> VestingConfig:
    return (config or load_config()).with_rpc_url(rpc_url)


def get_vesting_info(
    token_address: str,
    rpc_url: Optional[str] = None,
    config: Optional[VestingConfig] = None,
) -> Dict[str, Any]:
    query, _ = build_services(_resolve(config, rpc_url))
    return query.get_vesting_info(token_address)


def get_all_vesting_info(
    token_addresses: Sequence[str],
    rpc_url: Optional[str] = None,
    config: Optional[VestingConfig] = None,
) -> Dict[str, Any]:
    query, _ = build_services(_resolve(config, rpc_url))
    return query.get_all_vesting_info(token_addresses)


def claim_vested_tokens(
    password: str,
    token_address: str,
    rpc_url: Optional[str] = None,
    config: Optional[VestingConfig] = None,
) -> Dict[str, Any]:
    _, claim = build_services(_resolve(config, rpc_url))
    return claim.claim_vested_tokens(password, token_address)
