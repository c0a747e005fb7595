from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class ResolvedPrice:
    final_price: float
    savings: float


@dataclass(frozen=True)
class PricedItem:
    """One client price as seen by the aggregations below."""
    base_price: float
    custom_price: float = 0.0
    discount_percentage: float = 0.0

    @property
    def resolved(self) -> ResolvedPrice:
        return resolve_price(self.base_price, self.custom_price, self.discount_percentage)


def _apply_discount(price: float, discount_percentage: float) -> float:
    """
    Apply percentage discount:
    price=100, discount_percentage=10 -> 90
    price=100, discount_percentage=-10 -> 110 (markup)
    """
    return price * (1.0 - discount_percentage / 100.0)


def resolve_price(
    base_price: float,
    custom_price: Optional[float] = 0.0,
    discount_percentage: Optional[float] = 0.0,
) -> ResolvedPrice:
    """
    Effective client price for a product.

    A positive custom price wins; otherwise the discount is applied to the
    base price. Savings are negative for markups.
    """
    base_price = float(base_price)
    custom_price = float(custom_price or 0.0)
    discount_percentage = float(discount_percentage or 0.0)

    if custom_price > 0:
        final_price = custom_price
    else:
        final_price = _apply_discount(base_price, discount_percentage)

    return ResolvedPrice(final_price=final_price, savings=base_price - final_price)


def effective_discount_percentage(item: PricedItem) -> float:
    if item.discount_percentage:
        return float(item.discount_percentage)
    if item.base_price <= 0:
        return 0.0
    final_price = item.resolved.final_price
    return (item.base_price - final_price) / item.base_price * 100.0


def average_discount(items: Iterable[PricedItem]) -> float:
    percentages = [effective_discount_percentage(item) for item in items]
    if not percentages:
        return 0.0
    return sum(percentages) / len(percentages)


def total_savings(items: Iterable[PricedItem]) -> float:
    return sum(item.resolved.savings for item in items)


def is_below_floor(base_price: float, final_price: float) -> bool:
    # tolerate float noise from percentage arithmetic
    return final_price < base_price - 1e-9
