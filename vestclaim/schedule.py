#!/usr/bin/env python3
"""Vesting schedule entities and the pure math over them.

A schedule's phase is a function of ``now`` only:

    now >= end_time          -> FULLY_VESTED (checked first, covers start == end)
    now <= start_time        -> NOT_STARTED
    start < now < end        -> VESTING, vested = total * elapsed // duration

All amounts are base-unit Python ints; nothing here touches floats.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from vestclaim.errors import InvalidSchedule

SECONDS_PER_DAY = 86400
DAYS_PER_MONTH = 30

UNKNOWN_NAME = "Unknown"
UNKNOWN_SYMBOL = "UNKNOWN"
DEFAULT_DECIMALS = 18


class VestingPhase(str, Enum):
    NOT_STARTED = "not_started"
    VESTING = "vesting"
    FULLY_VESTED = "fully_vested"


@dataclass(frozen=True)
class TokenInfo:
    address: str
    name: str = UNKNOWN_NAME
    symbol: str = UNKNOWN_SYMBOL
    decimals: int = DEFAULT_DECIMALS

    @classmethod
    def unknown(cls, address: str) -> "TokenInfo":
        return cls(address=address)


@dataclass(frozen=True)
class VestingSchedule:
    total_amount: int
    released_amount: int
    start_time: int
    end_time: int

    def __post_init__(self):
        if self.end_time < self.start_time:
            raise InvalidSchedule(
                f"end_time {self.end_time} precedes start_time {self.start_time}"
            )
        if not 0 <= self.released_amount <= self.total_amount:
            raise InvalidSchedule(
                f"released {self.released_amount} outside [0, {self.total_amount}]"
            )

    @classmethod
    def from_contract(cls, fields: Sequence[int]) -> "VestingSchedule":
        """Build from ``getSchedule`` output: (total, released, releasable, start, end)."""
        if len(fields) != 5:
            raise InvalidSchedule(f"expected 5 schedule fields, got {len(fields)}")
        total, released, _releasable, start, end = (int(f) for f in fields)
        return cls(
            total_amount=total,
            released_amount=released,
            start_time=start,
            end_time=end,
        )

    @property
    def exists(self) -> bool:
        return self.total_amount != 0

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class VestingSnapshot:
    vested_amount: int
    releasable_amount: int
    locked_amount: int
    progress_percent: int
    time_remaining: str
    phase: VestingPhase
    # released > vested; the schedule was read from a stale or inconsistent state
    overdrawn: bool = False


@dataclass(frozen=True)
class ClaimResult:
    claimed_amount: int
    transaction_hash: str
    block_number: int
    new_balance: Optional[int] = None


def vesting_phase(schedule: VestingSchedule, now: int) -> VestingPhase:
    if now >= schedule.end_time:
        return VestingPhase.FULLY_VESTED
    if now <= schedule.start_time:
        return VestingPhase.NOT_STARTED
    return VestingPhase.VESTING


def vested_amount(schedule: VestingSchedule, now: int) -> int:
    phase = vesting_phase(schedule, now)
    if phase is VestingPhase.FULLY_VESTED:
        return schedule.total_amount
    if phase is VestingPhase.NOT_STARTED:
        return 0
    return schedule.total_amount * (now - schedule.start_time) // schedule.duration


def releasable_amount(schedule: VestingSchedule, now: int) -> int:
    return max(vested_amount(schedule, now) - schedule.released_amount, 0)


def locked_amount(schedule: VestingSchedule, now: int) -> int:
    return schedule.total_amount - vested_amount(schedule, now)


def progress_percent(schedule: VestingSchedule, now: int) -> int:
    phase = vesting_phase(schedule, now)
    if phase is VestingPhase.FULLY_VESTED:
        return 100
    if phase is VestingPhase.NOT_STARTED:
        return 0
    percent = 100 * (now - schedule.start_time) // schedule.duration
    return min(max(percent, 0), 100)


def _ceil_days(seconds: int) -> int:
    return -(-seconds // SECONDS_PER_DAY)


def time_remaining_label(schedule: VestingSchedule, now: int) -> str:
    phase = vesting_phase(schedule, now)
    if phase is VestingPhase.FULLY_VESTED:
        return "Fully vested"
    if phase is VestingPhase.NOT_STARTED:
        return f"Starts in {_ceil_days(schedule.start_time - now)} days"

    remaining_days = _ceil_days(schedule.end_time - now)
    if remaining_days > DAYS_PER_MONTH:
        return f"{remaining_days // DAYS_PER_MONTH} months remaining"
    return f"{remaining_days} days remaining"


def snapshot(schedule: VestingSchedule, now: int) -> VestingSnapshot:
    vested = vested_amount(schedule, now)
    return VestingSnapshot(
        vested_amount=vested,
        releasable_amount=max(vested - schedule.released_amount, 0),
        locked_amount=schedule.total_amount - vested,
        progress_percent=progress_percent(schedule, now),
        time_remaining=time_remaining_label(schedule, now),
        phase=vesting_phase(schedule, now),
        overdrawn=schedule.released_amount > vested,
    )
