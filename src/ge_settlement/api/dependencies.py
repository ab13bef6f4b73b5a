"""Accessors for the process-wide singletons built in the app lifespan.

Routers depend on these instead of reading app.state directly so tests can
swap them with app.dependency_overrides.
"""

from fastapi import Request

from src.ge_account.domain.repository import BalanceStoreProtocol
from src.ge_settlement.application.coordinator import SettlementCoordinator


def get_coordinator(request: Request) -> SettlementCoordinator:
    return request.app.state.coordinator


def get_balance_store(request: Request) -> BalanceStoreProtocol:
    return request.app.state.balance_store
