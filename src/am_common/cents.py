"""Integer arithmetic utilities for cents-based auction money.

All prices, deposits, and balances use int (cents). No float, no Decimal.
Rates are int basis points (1 bp = 0.01%).
"""


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 30100 -> '$301.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def apply_rate_bps(amount: int, rate_bps: int) -> int:
    """Apply a basis-point rate with half-up rounding to the nearest cent.

    round(amount * rate, 2) expressed in integer cents:
    (amount * rate_bps + 5000) // 10000
    """
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    if amount == 0 or rate_bps == 0:
        return 0
    return (amount * rate_bps + 5000) // 10000
