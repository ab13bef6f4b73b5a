"""Per-play settlement state machine.

RECEIVED → VALIDATED → DEBITED → OUTCOME_DRAWN → SETTLED
REJECTED is reachable only before the debit; FAILED only after it.
"""

from src.ge_common.enums import PlayState
from src.ge_common.errors import InternalError

_TRANSITIONS: dict[PlayState, frozenset[PlayState]] = {
    PlayState.RECEIVED: frozenset({PlayState.VALIDATED, PlayState.REJECTED}),
    PlayState.VALIDATED: frozenset({PlayState.DEBITED, PlayState.REJECTED}),
    PlayState.DEBITED: frozenset({PlayState.OUTCOME_DRAWN, PlayState.FAILED}),
    PlayState.OUTCOME_DRAWN: frozenset({PlayState.SETTLED, PlayState.FAILED}),
    PlayState.SETTLED: frozenset(),
    PlayState.REJECTED: frozenset(),
    PlayState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset(s for s, targets in _TRANSITIONS.items() if not targets)


def can_transition(current: PlayState, target: PlayState) -> bool:
    return target in _TRANSITIONS[current]


def transition(current: PlayState, target: PlayState) -> PlayState:
    if not can_transition(current, target):
        raise InternalError(f"Illegal settlement transition {current.value} → {target.value}")
    return target
