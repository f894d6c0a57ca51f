"""Pricing calculator for rental windows.

Prices are flat per period: the resource rate plus a fixed surcharge for
each selected add-on, multiplied by the number of started periods.
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping

from src.config.settings import Settings
from src.models.reservation import AddOn
from src.services.errors import InvalidDuration, InvalidWindow, ValidationError

_CENTS = Decimal("0.01")


class PricingCalculator:
    """Computes period counts and totals from a fixed surcharge table."""

    def __init__(
        self,
        surcharges: Mapping[AddOn, Decimal],
        period_length: timedelta = timedelta(days=1),
    ):
        """
        Initialize pricing calculator.

        Args:
            surcharges: Per-period surcharge for every add-on
            period_length: Length of one billable period
        """
        missing = set(AddOn) - set(surcharges)
        if missing:
            raise ValueError(f"Missing surcharge for add-ons: {sorted(a.value for a in missing)}")
        if period_length <= timedelta(0):
            raise ValueError("period_length must be positive")
        self.surcharges = dict(surcharges)
        self.period_length = period_length

    @classmethod
    def from_settings(cls, settings: Settings) -> "PricingCalculator":
        """Build calculator from application settings."""
        return cls(
            surcharges={
                AddOn.EXTRA_DRIVER: settings.extra_driver_surcharge,
                AddOn.INSURANCE: settings.insurance_surcharge,
            },
            period_length=timedelta(hours=settings.period_length_hours),
        )

    def count_periods(self, window_start: datetime, window_end: datetime) -> int:
        """Number of started periods in [window_start, window_end), at least 1."""
        if window_end <= window_start:
            raise InvalidWindow("window_end must be after window_start")

        periods, remainder = divmod(window_end - window_start, self.period_length)
        if remainder:
            periods += 1
        return max(periods, 1)

    def surcharge_per_period(self, addons: Iterable[AddOn]) -> Decimal:
        """Sum of per-period surcharges for the selected add-ons."""
        return sum((self.surcharges[addon] for addon in set(addons)), Decimal("0"))

    def compute_price(
        self,
        price_per_period: Decimal,
        period_count: int,
        addons: Iterable[AddOn] = (),
    ) -> Decimal:
        """
        Compute total price for a rental.

        Args:
            price_per_period: Resource rate per period
            period_count: Number of billable periods
            addons: Selected add-ons

        Returns:
            rate * periods + sum(surcharge * periods), rounded to cents

        Raises:
            InvalidDuration: If period_count < 1
            ValidationError: If the rate is not positive
        """
        if period_count < 1:
            raise InvalidDuration(f"Minimum rental is 1 period, got {period_count}")
        if price_per_period <= 0:
            raise ValidationError("price_per_period must be positive")

        total = (price_per_period + self.surcharge_per_period(addons)) * period_count
        return total.quantize(_CENTS, rounding=ROUND_HALF_UP)
