"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class GameType(str, Enum):
    DICE = "DICE"
    SLOTS = "SLOTS"
    CRASH = "CRASH"


class DiceDirection(str, Enum):
    OVER = "OVER"
    UNDER = "UNDER"


class BetStatus(str, Enum):
    SETTLED = "SETTLED"
    REFUNDED = "REFUNDED"


class PlayState(str, Enum):
    """Per-request settlement state machine."""
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    DEBITED = "DEBITED"
    OUTCOME_DRAWN = "OUTCOME_DRAWN"
    SETTLED = "SETTLED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


class RoundState(str, Enum):
    """Live crash round: single writer, many readers."""
    IDLE = "IDLE"
    BETTING = "BETTING"
    RUNNING = "RUNNING"
    CRASHED = "CRASHED"


class LedgerEntryType(str, Enum):
    BET_STAKE = "BET_STAKE"
    BET_PAYOUT = "BET_PAYOUT"
    BET_REFUND = "BET_REFUND"
