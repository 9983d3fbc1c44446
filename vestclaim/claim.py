#!/usr/bin/env python3
"""
Claim (release) vested tokens for the local wallet.

Steps run strictly in order: unlock -> read schedule -> compute releasable ->
submit release -> wait for receipt -> read new balance. The release is sent
at most once per call and never retried here.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from eth_account.signers.local import LocalAccount

from vestclaim.amounts import format_units
from vestclaim.config import VestingConfig
from vestclaim.errors import (
    ClaimFailed,
    InvalidPassword,
    NoWallet,
    NothingToClaim,
    ScheduleNotFound,
    TransactionReverted,
    VestingError,
    describe,
    is_bad_password,
    is_revert,
)
from vestclaim.ledger import LedgerClient
from vestclaim.query import fetch_schedule, fetch_token_info, validate_token_address
from vestclaim.schedule import ClaimResult, TokenInfo, releasable_amount
from vestclaim.wallet import WalletStore

logger = logging.getLogger(__name__)


class ClaimService:
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

    def claim_vested_tokens(self, password: str, token_address: str) -> Dict[str, Any]:
        try:
            return self._claim(password, token_address)
        except VestingError as e:
            return e.to_result()
        except Exception as e:
            logger.exception("Claim failed for %s", token_address)
            if is_revert(e):
                return TransactionReverted(
                    token_address=token_address,
                ).to_result()
            return ClaimFailed(
                f"Claim failed: {describe(e)}",
                token_address=token_address,
            ).to_result()

    def _unlock(self, password: str) -> LocalAccount:
        try:
            return self.wallet.unlock(password)
        except (InvalidPassword, NoWallet):
            raise
        except Exception as e:
            if is_bad_password(e):
                raise InvalidPassword() from e
            raise

    def _claim(self, password: str, token_address: str) -> Dict[str, Any]:
        if not self.wallet.has_wallet():
            raise NoWallet()
        validate_token_address(token_address)

        signer = self._unlock(password)
        beneficiary = signer.address

        token = fetch_token_info(self.ledger, token_address)
        context = {
            "token_address": token_address,
            "token_name": token.name,
            "token_symbol": token.symbol,
        }
        schedule = fetch_schedule(self.ledger, beneficiary, token_address)
        if not schedule.exists:
            raise ScheduleNotFound("No vesting schedule found for this token.", **context)

        releasable = releasable_amount(schedule, int(self.clock()))
        if releasable <= 0:
            raise NothingToClaim(**context)

        logger.info("Releasing %s base units of %s to %s", releasable, token.symbol, beneficiary)
        tx_hash: Optional[str] = None
        try:
            tx_hash = self.ledger.submit_release(signer, beneficiary, token_address)
            receipt = self.ledger.await_confirmation(tx_hash)
        except Exception as e:
            # the release may already be in flight; report its hash, never resend
            if is_revert(e):
                raise TransactionReverted(transaction_hash=tx_hash, **context) from e
            raise ClaimFailed(
                f"Claim failed: {describe(e)}", transaction_hash=tx_hash, **context
            ) from e
        if not receipt.succeeded:
            raise TransactionReverted(
                transaction_hash=receipt.transaction_hash,
                block_number=receipt.block_number,
                **context,
            )

        try:
            new_balance: Optional[int] = self.ledger.read_balance(beneficiary, token_address)
        except Exception as e:
            # release is confirmed on-chain; only the follow-up read failed
            logger.warning(
                "Claim %s confirmed but balance read failed for %s: %s",
                receipt.transaction_hash, token_address, describe(e),
            )
            new_balance = None
        claim = ClaimResult(
            claimed_amount=releasable,
            transaction_hash=receipt.transaction_hash,
            block_number=receipt.block_number,
            new_balance=new_balance,
        )
        return self._payload(token, claim)

    def _payload(self, token: TokenInfo, claim: ClaimResult) -> Dict[str, Any]:
        amount = format_units(claim.claimed_amount, token.decimals)
        result: Dict[str, Any] = {
            "success": True,
            "message": f"Successfully claimed {amount} {token.symbol}!",
            "token": {
                "address": token.address,
                "name": token.name,
                "symbol": token.symbol,
            },
            "claimed": {
                "amount": amount,
                "raw_amount": str(claim.claimed_amount),
            },
            "transaction": {
                "hash": claim.transaction_hash,
                "block_number": claim.block_number,
            },
            "new_balance": None,
            "raw_new_balance": None,
            "vesting_manager_address": self.config.vesting_manager_address,
        }
        if claim.new_balance is None:
            result["warning"] = "Claim confirmed but the new balance could not be read."
        else:
            result["new_balance"] = format_units(claim.new_balance, token.decimals)
            result["raw_new_balance"] = str(claim.new_balance)
        return result
