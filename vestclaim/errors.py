#!/usr/bin/env python3
"""Failure taxonomy for vesting queries and claims.

Services raise these internally and turn them into result dicts with
``to_result()`` before returning to the caller.
"""
from __future__ import annotations

from typing import Any, Dict

REVERT_MARKERS = ("execution reverted", "call revert")
BAD_PASSWORD_MARKERS = ("MAC mismatch", "Unsupported state", "auth")


class VestingError(Exception):
    category = "VestingError"
    default_message = "Vesting operation failed"

    def __init__(self, message: str | None = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_result(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
            "category": self.category,
        }
        for key, value in self.context.items():
            if value is not None:
                result[key] = value
        return result


# Categories


class InvalidInput(VestingError):
    category = "InvalidInput"
    default_message = "Invalid input"


class NotFound(VestingError):
    category = "NotFound"


class Unauthorized(VestingError):
    category = "Unauthorized"


class ExternalFailure(VestingError):
    category = "ExternalFailure"


class BusinessRuleViolation(VestingError):
    category = "BusinessRuleViolation"


# Leaves


class InvalidTokenAddress(InvalidInput):
    default_message = "Invalid token address"


class InvalidAmount(InvalidInput, ValueError):
    default_message = "Invalid amount"


class InvalidSchedule(InvalidInput, ValueError):
    default_message = "Malformed vesting schedule"


class NoWallet(NotFound):
    default_message = "No wallet found. Create a wallet first."


class ScheduleNotFound(NotFound):
    default_message = (
        "No vesting schedule found for this token. "
        "The vesting schedule may not have been created yet."
    )


class InvalidPassword(Unauthorized):
    default_message = "Invalid password"


class ScheduleFetchFailed(ExternalFailure):
    default_message = "Failed to fetch vesting schedule"


class TransientRpcFailure(ExternalFailure):
    default_message = "Failed to get vesting info"


class LedgerUnavailable(ExternalFailure):
    default_message = "Could not connect to any RPC endpoint"


class TransactionReverted(ExternalFailure):
    default_message = (
        "Transaction reverted. No vesting schedule may exist "
        "or no tokens are available to claim."
    )


class ClaimFailed(ExternalFailure):
    default_message = "Claim failed"


class NothingToClaim(BusinessRuleViolation):
    default_message = (
        "No tokens available to claim. "
        "All vested tokens have already been claimed."
    )


def describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def is_revert(exc: BaseException) -> bool:
    message = describe(exc)
    return any(marker in message for marker in REVERT_MARKERS)


def is_bad_password(exc: BaseException) -> bool:
    if isinstance(exc, InvalidPassword):
        return True
    message = describe(exc)
    return any(marker in message for marker in BAD_PASSWORD_MARKERS)
