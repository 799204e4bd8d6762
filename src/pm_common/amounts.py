"""Decimal arithmetic for USDC amounts and odds.

Amounts are Decimal end to end (never float) and rounded half-up, matching
how the quote and bet figures are shown to users.
"""

from decimal import ROUND_HALF_UP, Decimal

AMOUNT_PLACES = 6    # USDC precision
ODDS_PLACES = 2
USDC_DECIMALS = 6


def to_decimal(value: object) -> Decimal:
    """Convert an int/float/str/Decimal to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: object, places: int) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def round_amount(value: object) -> Decimal:
    """Round to 6 decimal places: 52 -> Decimal('52.000000')."""
    return quantize(value, AMOUNT_PLACES)


def round_odds(value: object) -> Decimal:
    """Round to 2 decimal places: 1.8456 -> Decimal('1.85')."""
    return quantize(value, ODDS_PLACES)


def to_atomic_units(amount: object, decimals: int = USDC_DECIMALS) -> int:
    """USDC amount to on-chain integer units: 10.5 -> 10_500_000."""
    return int(to_decimal(amount).scaleb(decimals).to_integral_value(rounding=ROUND_HALF_UP))


def exceeds_places(value: object, places: int = AMOUNT_PLACES) -> bool:
    """True when value carries more fractional digits than a NUMERIC(_, places) column keeps."""
    exponent = to_decimal(value).normalize().as_tuple().exponent
    return isinstance(exponent, int) and exponent < -places
