"""Fixed odds rule, applied once when a bet is prepared.

Agreeing with the AI pays less the more confident it is; betting against a
confident AI pays more:

    agree:    1.5 + (100 - confidence) / 100 * 0.8     → [1.50, 2.30]
    disagree: 1.8 + confidence / 100 * 1.2             → [1.80, 3.00]

A "neutral" prediction never agrees with a directional bet.
"""

from decimal import Decimal

from src.pm_common.amounts import round_amount, round_odds, to_decimal

_HUNDRED = Decimal(100)
_AGREE_BASE = Decimal("1.5")
_AGREE_SPAN = Decimal("0.8")
_DISAGREE_BASE = Decimal("1.8")
_DISAGREE_SPAN = Decimal("1.2")


def calculate_odds(confidence: int, bet_direction: str, ai_prediction: str) -> Decimal:
    conf = min(max(to_decimal(confidence), Decimal(0)), _HUNDRED)
    if bet_direction == ai_prediction:
        odds = _AGREE_BASE + (_HUNDRED - conf) / _HUNDRED * _AGREE_SPAN
    else:
        odds = _DISAGREE_BASE + conf / _HUNDRED * _DISAGREE_SPAN
    return round_odds(odds)


def potential_payout(amount: Decimal, odds: Decimal) -> Decimal:
    return round_amount(to_decimal(amount) * odds)
