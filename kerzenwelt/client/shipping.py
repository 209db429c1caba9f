"""Shipping cost calculation driven by shop settings."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from kerzenwelt.client.settings_api import SettingsClient

logger = logging.getLogger(__name__)

FREE_SHIPPING_THRESHOLD_KEY = "freeShippingThreshold"
STANDARD_SHIPPING_RATE_KEY = "standardShippingRate"
EXPRESS_SHIPPING_RATE_KEY = "expressShippingRate"

DEFAULT_FREE_SHIPPING_THRESHOLD = "50"
DEFAULT_STANDARD_SHIPPING_RATE = "5"
DEFAULT_EXPRESS_SHIPPING_RATE = "0"


@dataclass(frozen=True)
class ShippingQuote:
    """Shipping cost for a cart subtotal."""

    cost: Decimal
    is_free: bool


def parse_amount(value: str, default: str) -> Decimal:
    """Parse a money setting, falling back to ``default`` for blank or malformed values."""
    try:
        amount = Decimal(value.strip().replace(",", "."))
    except (InvalidOperation, AttributeError):
        logger.warning(f"Invalid amount {value!r}, using default {default}")
        return Decimal(default)
    if not amount.is_finite():
        return Decimal(default)
    return amount


def calculate_shipping(
    subtotal: Decimal,
    free_threshold: Decimal,
    standard_rate: Decimal,
) -> ShippingQuote:
    """Calculate standard shipping for a subtotal.

    A zero standard rate means shipping is always free. Otherwise shipping is
    free once the subtotal reaches a positive threshold.
    """
    if standard_rate == 0:
        return ShippingQuote(cost=Decimal("0"), is_free=True)

    if free_threshold > 0 and subtotal >= free_threshold:
        return ShippingQuote(cost=Decimal("0"), is_free=True)

    return ShippingQuote(cost=standard_rate, is_free=False)


def amount_until_free_shipping(subtotal: Decimal, free_threshold: Decimal) -> Decimal:
    """How much more the customer must spend for free shipping (0 if reached or disabled)."""
    if free_threshold <= 0 or subtotal >= free_threshold:
        return Decimal("0")
    return free_threshold - subtotal


class ShippingSettings:
    """Shipping settings as seen through a :class:`SettingsClient`.

    Reads use :meth:`SettingsClient.get_value`, so they return the defaults
    until the first fetch completes.
    """

    def __init__(self, client: SettingsClient):
        self.client = client

    @property
    def free_threshold(self) -> Decimal:
        value = self.client.get_value(FREE_SHIPPING_THRESHOLD_KEY, DEFAULT_FREE_SHIPPING_THRESHOLD)
        return parse_amount(value, DEFAULT_FREE_SHIPPING_THRESHOLD)

    @property
    def standard_rate(self) -> Decimal:
        value = self.client.get_value(STANDARD_SHIPPING_RATE_KEY, DEFAULT_STANDARD_SHIPPING_RATE)
        return parse_amount(value, DEFAULT_STANDARD_SHIPPING_RATE)

    @property
    def express_rate(self) -> Decimal:
        value = self.client.get_value(EXPRESS_SHIPPING_RATE_KEY, DEFAULT_EXPRESS_SHIPPING_RATE)
        return parse_amount(value, DEFAULT_EXPRESS_SHIPPING_RATE)

    def quote(self, subtotal: Decimal) -> ShippingQuote:
        return calculate_shipping(subtotal, self.free_threshold, self.standard_rate)

    def remaining_for_free_shipping(self, subtotal: Decimal) -> Decimal:
        return amount_until_free_shipping(subtotal, self.free_threshold)

    async def save(
        self,
        free_threshold: str,
        standard_rate: str,
        express_rate: str,
    ) -> None:
        """Store all three shipping settings, one after another."""
        await self.client.upsert(FREE_SHIPPING_THRESHOLD_KEY, free_threshold)
        await self.client.upsert(STANDARD_SHIPPING_RATE_KEY, standard_rate)
        await self.client.upsert(EXPRESS_SHIPPING_RATE_KEY, express_rate)
