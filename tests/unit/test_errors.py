"""Tests for ge_common.errors and ge_common.response."""

from src.ge_common.errors import (
    AppError,
    ConflictError,
    DebitContentionError,
    DebitUnconfirmedError,
    EntropyUnavailableError,
    FailedError,
    GameConfigurationError,
    InsufficientBalanceError,
    InternalError,
    RejectedError,
    StakeOutOfRangeError,
    StoreUnavailableError,
    TooLateError,
)
from src.ge_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestRejectedErrors:
    def test_insufficient_balance(self) -> None:
        err = InsufficientBalanceError(required=1001, available=1000)
        assert err.code == 2001
        assert err.http_status == 422
        assert "1001" in err.message
        assert "1000" in err.message
        assert isinstance(err, RejectedError)

    def test_stake_out_of_range(self) -> None:
        err = StakeOutOfRangeError(50, 100, 100_000)
        assert err.code == 2004
        assert isinstance(err, RejectedError)

    def test_debit_contention_is_rejection(self) -> None:
        err = DebitContentionError("acct-1")
        assert isinstance(err, RejectedError)
        assert err.http_status == 409

    def test_conflict_is_not_a_rejection(self) -> None:
        err = ConflictError("acct-1", 7)
        assert not isinstance(err, RejectedError)
        assert err.expected_version == 7


class TestSettlementErrors:
    def test_failed_error_carries_bet_id(self) -> None:
        err = FailedError("bet-9")
        assert err.code == 7001
        assert err.http_status == 202
        assert err.bet_id == "bet-9"
        assert "bet-9" in err.message

    def test_unconfirmed_debit_is_a_store_failure(self) -> None:
        err = DebitUnconfirmedError("bet-9")
        assert isinstance(err, StoreUnavailableError)
        assert not isinstance(err, RejectedError)
        assert err.reference_id == "bet-9"
        assert err.http_status == 503

    def test_too_late(self) -> None:
        err = TooLateError("round-1")
        assert err.code == 6001
        assert err.http_status == 409


class TestInternalErrors:
    def test_configuration_error_is_internal(self) -> None:
        err = GameConfigurationError("edge out of range")
        assert isinstance(err, InternalError)
        assert err.code == 9004
        assert "edge out of range" in err.message

    def test_entropy_error_is_internal(self) -> None:
        err = EntropyUnavailableError()
        assert isinstance(err, InternalError)
        assert err.code == 9005
        assert err.http_status == 500


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"bet_id": "abc"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"bet_id": "abc"}

    def test_success_keeps_request_id(self) -> None:
        resp = success_response(None, "req_123")
        assert resp.request_id == "req_123"

    def test_error(self) -> None:
        resp = error_response(2001, "Insufficient balance")
        assert resp.code == 2001
        assert resp.data is None

    def test_serialization(self) -> None:
        d = ApiResponse(data={"payout": 1980}).model_dump()
        assert set(d) == {"code", "message", "data", "timestamp", "request_id"}
