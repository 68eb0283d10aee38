"""Price drop notification rule."""

import math
from dataclasses import dataclass


def discount_percentage(current_price: int, original_price: int) -> int:
    """
    Discount of ``current_price`` against ``original_price`` in whole percent.

    Rounds half up. Returns 0 when the original price is not positive.
    """
    if not original_price or original_price <= 0:
        return 0
    return math.floor((original_price - current_price) / original_price * 100 + 0.5)


@dataclass
class DropRule:
    """
    Edge-triggered drop threshold.

    Fires only on the transition from below ``threshold`` to at or above it,
    not on every check where the discount stays beyond it.
    """

    threshold: int = 60  # Discount percent against the original price
    enabled: bool = True

    def check(
        self,
        previous_price: int,
        current_price: int,
        original_price: int,
    ) -> tuple[bool, str]:
        """
        Check if a price change crosses the threshold.

        Args:
            previous_price: Last stored price
            current_price: Newly extracted price
            original_price: Effective original price for both discounts

        Returns:
            Tuple of (triggered: bool, reason: str)
        """
        if not self.enabled:
            return False, "Rule disabled"

        if current_price >= previous_price:
            return False, "Price did not drop"

        previous_pct = discount_percentage(previous_price, original_price)
        current_pct = discount_percentage(current_price, original_price)

        if current_pct < self.threshold:
            return False, f"{current_pct}% off is below the {self.threshold}% threshold"

        if previous_pct >= self.threshold:
            return False, f"Already at {previous_pct}% off, threshold {self.threshold}% previously met"

        return True, f"{previous_pct}% -> {current_pct}% off crosses the {self.threshold}% threshold"
