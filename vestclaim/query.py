#!/usr/bin/env python3
"""
Read-only vesting lookups for the local wallet.

Every public method returns a plain dict; failures come back as
``{"success": False, "error": ..., "code": ...}`` rather than raising.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Sequence

from web3 import Web3

from vestclaim.amounts import format_units
from vestclaim.config import VestingConfig
from vestclaim.errors import (
    InvalidInput,
    InvalidSchedule,
    InvalidTokenAddress,
    NoWallet,
    ScheduleFetchFailed,
    ScheduleNotFound,
    TransientRpcFailure,
    VestingError,
    describe,
    is_revert,
)
from vestclaim.ledger import LedgerClient
from vestclaim.schedule import TokenInfo, VestingSchedule, VestingSnapshot, snapshot
from vestclaim.wallet import WalletStore

logger = logging.getLogger(__name__)


def validate_token_address(token_address: Any) -> str:
    if not token_address or not isinstance(token_address, str) or not Web3.is_address(token_address):
        raise InvalidTokenAddress(token_address=token_address or None)
    return token_address


def fetch_token_info(ledger: LedgerClient, token_address: str) -> TokenInfo:
    """Token metadata, or the Unknown/UNKNOWN/18 defaults when the calls fail."""
    try:
        return ledger.read_token_metadata(token_address)
    except Exception as e:
        logger.warning("Token metadata unavailable for %s, using defaults: %s", token_address, describe(e))
        return TokenInfo.unknown(token_address)


def fetch_schedule(ledger: LedgerClient, account: str, token_address: str, **context: Any) -> VestingSchedule:
    try:
        return ledger.read_schedule(account, token_address)
    except Exception as e:
        raise ScheduleFetchFailed(
            f"Failed to fetch vesting schedule: {describe(e)}",
            token_address=token_address,
            **context,
        ) from e


def iso_timestamp(seconds: int) -> str:
    """UTC ISO-8601 with milliseconds; InvalidSchedule when the platform cannot represent it."""
    try:
        stamp = datetime.fromtimestamp(seconds, timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise InvalidSchedule(f"Schedule timestamp out of range: {seconds}") from e
    return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class VestingQueryService:
    def __init__(
        self,
        wallet: WalletStore,
        ledger: LedgerClient,
        config: VestingConfig,
        clock: Callable[[], float] = time.time,
    ):
        self.wallet = wallet
        self.ledger = ledger
        self.config = config
        self.clock = clock

    def get_vesting_info(self, token_address: str) -> Dict[str, Any]:
        try:
            return self._vesting_info(token_address)
        except VestingError as e:
            return e.to_result()
        except Exception as e:
            logger.exception("Vesting lookup failed for %s", token_address)
            if is_revert(e):
                return ScheduleNotFound(
                    "No vesting schedule found for this token and wallet combination",
                    token_address=token_address,
                    vesting_manager_address=self.config.vesting_manager_address,
                ).to_result()
            return TransientRpcFailure(
                f"Failed to get vesting info: {describe(e)}",
                token_address=token_address,
            ).to_result()

    def _resolve_beneficiary(self) -> str:
        try:
            return self.wallet.get_address()
        except NoWallet:
            raise
        except Exception as e:
            raise NoWallet(f"No wallet found. Create a wallet first. ({describe(e)})") from e

    def _vesting_info(self, token_address: str) -> Dict[str, Any]:
        beneficiary = self._resolve_beneficiary()
        validate_token_address(token_address)

        token = fetch_token_info(self.ledger, token_address)
        schedule = fetch_schedule(self.ledger, beneficiary, token_address, beneficiary=beneficiary)
        if not schedule.exists:
            raise ScheduleNotFound(
                token_address=token_address,
                beneficiary=beneficiary,
                vesting_manager_address=self.config.vesting_manager_address,
            )

        now = int(self.clock())
        snap = snapshot(schedule, now)
        if snap.overdrawn:
            logger.warning(
                "Schedule for %s on %s reports %s released but only %s vested",
                beneficiary, token_address, schedule.released_amount, snap.vested_amount,
            )
        return self._payload(token, beneficiary, schedule, snap)

    def _payload(
        self,
        token: TokenInfo,
        beneficiary: str,
        schedule: VestingSchedule,
        snap: VestingSnapshot,
    ) -> Dict[str, Any]:
        def fmt(amount: int) -> str:
            return format_units(amount, token.decimals)

        result: Dict[str, Any] = {
            "success": True,
            "token": {
                "address": token.address,
                "name": token.name,
                "symbol": token.symbol,
                "decimals": token.decimals,
            },
            "beneficiary": beneficiary,
            "vesting": {
                "total_amount": fmt(schedule.total_amount),
                "released_amount": fmt(schedule.released_amount),
                "vested_amount": fmt(snap.vested_amount),
                "releasable_amount": fmt(snap.releasable_amount),
                "locked_amount": fmt(snap.locked_amount),
                "progress": f"{snap.progress_percent}%",
                "progress_percent": snap.progress_percent,
                "phase": snap.phase.value,
                "time_remaining": snap.time_remaining,
                "start_time": iso_timestamp(schedule.start_time),
                "end_time": iso_timestamp(schedule.end_time),
            },
            "raw": {
                "total_amount": str(schedule.total_amount),
                "released_amount": str(schedule.released_amount),
                "vested_amount": str(snap.vested_amount),
                "releasable_amount": str(snap.releasable_amount),
                "locked_amount": str(snap.locked_amount),
            },
            "vesting_manager_address": self.config.vesting_manager_address,
        }
        if snap.overdrawn:
            result["warning"] = (
                "Released amount exceeds vested amount; the schedule may be stale. "
                "Releasable amount reported as 0."
            )
        return result

    def get_all_vesting_info(self, token_addresses: Sequence[str]) -> Dict[str, Any]:
        if not isinstance(token_addresses, (list, tuple)) or not token_addresses:
            return InvalidInput("Token addresses array is required").to_result()

        schedules = []
        for token_address in token_addresses:
            result = self.get_vesting_info(token_address)
            if result["success"]:
                schedules.append(result)
            else:
                logger.info("Skipping %s: %s", token_address, result["error"])

        return {
            "success": True,
            "schedules": schedules,
            "total_schedules": len(schedules),
            "vesting_manager_address": self.config.vesting_manager_address,
        }
