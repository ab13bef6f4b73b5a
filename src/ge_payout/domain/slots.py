"""Slots: 3x3 grid, 8 paylines (3 rows, 3 columns, 2 diagonals).

Each payline whose three cells share a symbol pays stake * multiplier(symbol);
the spin pays the sum over all winning lines.
"""

from collections.abc import Iterable

from src.ge_config.domain.models import GameConfiguration, SlotSymbol
from src.ge_payout.domain.models import Grid, Position, SlotOutcome, WinningLine

GRID_ROWS = 3
GRID_COLS = 3

PAYLINES: tuple[tuple[Position, ...], ...] = (
    # rows
    ((0, 0), (0, 1), (0, 2)),
    ((1, 0), (1, 1), (1, 2)),
    ((2, 0), (2, 1), (2, 2)),
    # columns
    ((0, 0), (1, 0), (2, 0)),
    ((0, 1), (1, 1), (2, 1)),
    ((0, 2), (1, 2), (2, 2)),
    # diagonals
    ((0, 0), (1, 1), (2, 2)),
    ((2, 0), (1, 1), (0, 2)),
)


def find_winning_lines(grid: Grid) -> tuple[WinningLine, ...]:
    if len(grid) != GRID_ROWS or any(len(row) != GRID_COLS for row in grid):
        raise ValueError(f"slot grid must be {GRID_ROWS}x{GRID_COLS}")
    lines: list[WinningLine] = []
    for index, positions in enumerate(PAYLINES):
        symbols = {grid[r][c] for r, c in positions}
        if len(symbols) == 1:
            lines.append(
                WinningLine(line_index=index, symbol=symbols.pop(), positions=positions)
            )
    return tuple(lines)


def resolve_slots(grid: Grid, config: GameConfiguration) -> SlotOutcome:
    known = {s.name for s in config.symbols}
    unknown = {cell for row in grid for cell in row} - known
    if unknown:
        raise ValueError(f"grid contains symbols outside the table: {sorted(unknown)}")
    return SlotOutcome(grid=grid, winning_lines=find_winning_lines(grid))


def slots_payout(outcome: SlotOutcome, stake: int, config: GameConfiguration) -> int:
    return sum(
        stake * config.symbol_multiplier(line.symbol) for line in outcome.winning_lines
    )


def theoretical_rtp(symbols: Iterable[SlotSymbol]) -> float:
    """Expected payout per unit stake with independent uniform cells.

    A line of three cells matches symbol s with probability (1/n)^3, and every
    payline is an identical such event, so RTP = lines * sum(m_s) / n^3.
    """
    table = list(symbols)
    n = len(table)
    if n == 0:
        return 0.0
    return len(PAYLINES) * sum(s.multiplier for s in table) / n**3
