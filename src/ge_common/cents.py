"""Integer arithmetic for cents and basis points.

Balances, stakes and payouts are int cents. House edges are int basis points
(100 bps = 1%). Fractional payouts are floored: the player never receives a
fraction of a cent the house did not owe.
"""

BPS_SCALE = 10_000


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 10980 -> '$109.80', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def validate_bps(bps: int) -> None:
    """A house edge must lie strictly between 0 and 100%."""
    if not (0 < bps < BPS_SCALE):
        raise ValueError(f"house edge must be in (0, {BPS_SCALE}) bps, got {bps}")


def bps_to_fraction(bps: int) -> float:
    return bps / BPS_SCALE


def multiplier_to_hundredths(multiplier: float) -> int:
    """1.98 -> 198. Rounds to absorb float representation error."""
    return int(round(multiplier * 100))


def apply_hundredths(stake: int, multiplier_x100: int) -> int:
    """stake * (multiplier_x100 / 100), floored to the cent."""
    return stake * multiplier_x100 // 100
