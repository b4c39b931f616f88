"""Integer arithmetic utilities for cents-based balances and prices.

All prices, bids and balances use int (cents). No float, no Decimal.
"""


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def cents_or_none_to_display(cents: int | None) -> str | None:
    return cents_to_display(cents) if cents is not None else None
