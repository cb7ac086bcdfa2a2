"""Cash closeout rules: when to remind the venue, and how far off a count is"""

from decimal import Decimal, ROUND_HALF_UP
from balance_gateway.domain.models import CloseoutVariance, ExpectedCash

HIGH_VARIANCE_PERCENT = Decimal("5")


def needs_closeout_reminder(expected: ExpectedCash, threshold_days: int = 7) -> bool:
    """Remind the venue once more than threshold_days passed since its last closeout"""
    return expected.days_since_last_closeout > threshold_days


def compute_variance(actual_amount: Decimal, expected_amount: Decimal) -> CloseoutVariance:
    """
    Compare counted cash with what the system expected.

    Example:
        expected $1000, counted $940 -> variance -60, -6.00%, high
    """
    variance = actual_amount - expected_amount
    if expected_amount == 0:
        raw_percent = Decimal("0")
    else:
        raw_percent = variance / expected_amount * 100

    # The threshold applies to the exact ratio, rounding is for display only
    return CloseoutVariance(
        variance=variance,
        variance_percent=raw_percent.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        is_high=abs(raw_percent) > HIGH_VARIANCE_PERCENT,
    )
