"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account / stake validation (pre-debit, safe to retry with corrected input)
  6xxx: Crash round
  7xxx: Settlement (post-debit)
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


# --- 2xxx: Rejected (no side effects) ---

class RejectedError(AppError):
    """A play refused before any balance was touched."""

    def __init__(self, code: int, message: str, http_status: int = 422) -> None:
        super().__init__(code, message, http_status)


class InsufficientBalanceError(RejectedError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class AccountNotFoundError(RejectedError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2002, f"Account not found: {account_id}", 404)


class AccountBannedError(RejectedError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2003, f"Account is banned: {account_id}", 403)


class StakeOutOfRangeError(RejectedError):
    def __init__(self, stake: int, min_bet: int, max_bet: int) -> None:
        super().__init__(
            2004,
            f"Stake {stake} cents outside allowed range [{min_bet}, {max_bet}]",
            422,
        )


class InvalidGameParametersError(RejectedError):
    def __init__(self, detail: str) -> None:
        super().__init__(2005, f"Invalid game parameters: {detail}", 422)


class DebitContentionError(RejectedError):
    def __init__(self, account_id: str) -> None:
        super().__init__(
            2006, f"Balance is busy for account {account_id}, retry the play", 409
        )


class ConflictError(AppError):
    """Optimistic version check lost a race. Retried internally, never user-visible."""

    def __init__(self, account_id: str, expected_version: int) -> None:
        self.account_id = account_id
        self.expected_version = expected_version
        super().__init__(
            2101,
            f"Balance version conflict for {account_id} (expected v{expected_version})",
            409,
        )


# --- 6xxx: Crash round ---

class TooLateError(AppError):
    def __init__(self, round_id: str) -> None:
        super().__init__(6001, f"Round {round_id} already crashed", 409)


class BettingClosedError(AppError):
    def __init__(self) -> None:
        super().__init__(6002, "Crash round is not accepting bets", 409)


class NoActiveBetError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(6003, f"No active crash bet for account {account_id}", 404)


class DuplicateBetError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(6004, f"Account {account_id} already has a bet in this round", 409)


class RoundNotRunningError(AppError):
    def __init__(self) -> None:
        super().__init__(6005, "Crash round has not started", 409)


# --- 7xxx: Settlement ---

class FailedError(AppError):
    """Stake debited, settlement not yet recorded. Pending compensation."""

    def __init__(self, bet_id: str) -> None:
        self.bet_id = bet_id
        super().__init__(7001, f"Bet {bet_id} is pending resolution", 202)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StoreUnavailableError(AppError):
    """Transient failure of the balance store.

    Raised on commit the write may still have applied, so writes are retried
    only where they are idempotent.
    """

    def __init__(self, detail: str = "Balance store unavailable") -> None:
        super().__init__(9003, detail, 503)


class DebitUnconfirmedError(StoreUnavailableError):
    """The store failed while a debit was in flight; the stake may have been taken."""

    def __init__(self, reference_id: str) -> None:
        self.reference_id = reference_id
        super().__init__(f"Debit for {reference_id} unconfirmed")


class GameConfigurationError(InternalError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid game configuration: {detail}")
        self.code = 9004


class EntropyUnavailableError(InternalError):
    def __init__(self) -> None:
        super().__init__("Secure random source unavailable")
        self.code = 9005
