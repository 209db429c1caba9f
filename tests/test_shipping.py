"""Tests for shipping cost calculation and shipping settings."""

from decimal import Decimal

import pytest

from kerzenwelt.client.shipping import (
    ShippingQuote,
    ShippingSettings,
    amount_until_free_shipping,
    calculate_shipping,
    parse_amount,
)


class TestCalculateShipping:

    def test_below_threshold_pays_standard_rate(self):
        quote = calculate_shipping(Decimal("30"), Decimal("50"), Decimal("5"))

        assert quote == ShippingQuote(cost=Decimal("5"), is_free=False)

    def test_threshold_reached_is_free(self):
        quote = calculate_shipping(Decimal("50"), Decimal("50"), Decimal("5"))

        assert quote.is_free
        assert quote.cost == 0

    def test_zero_rate_is_always_free(self):
        assert calculate_shipping(Decimal("1"), Decimal("50"), Decimal("0")).is_free

    def test_zero_threshold_disables_free_shipping(self):
        quote = calculate_shipping(Decimal("1000"), Decimal("0"), Decimal("5"))

        assert not quote.is_free
        assert quote.cost == Decimal("5")

    def test_amount_until_free(self):
        assert amount_until_free_shipping(Decimal("42.50"), Decimal("50")) == Decimal("7.50")
        assert amount_until_free_shipping(Decimal("60"), Decimal("50")) == 0
        assert amount_until_free_shipping(Decimal("10"), Decimal("0")) == 0


class TestParseAmount:

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("50", Decimal("50")),
            (" 4.90 ", Decimal("4.90")),
            ("4,90", Decimal("4.90")),
            ("", Decimal("5")),
            ("five", Decimal("5")),
            ("NaN", Decimal("5")),
            ("Infinity", Decimal("5")),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_amount(value, "5") == expected


class TestShippingSettings:

    async def test_defaults_before_anything_is_stored(self, settings_client, query_cache):
        shipping = ShippingSettings(settings_client)

        assert shipping.free_threshold == Decimal("50")
        assert shipping.standard_rate == Decimal("5")
        assert shipping.express_rate == Decimal("0")

        await query_cache.settle()

        assert shipping.quote(Decimal("20")) == ShippingQuote(cost=Decimal("5"), is_free=False)

    async def test_save_then_quote(self, settings_client, query_cache, recorder, notifications):
        shipping = ShippingSettings(settings_client)

        await shipping.save(free_threshold="100", standard_rate="7.5", express_rate="15")
        # First reads start the fetches
        shipping.quote(Decimal("0"))
        shipping.express_rate
        await query_cache.settle()

        assert recorder.count("POST", "/api/settings") == 3
        assert [n.title for n in notifications.notifications] == ["Setting saved"] * 3
        assert shipping.express_rate == Decimal("15")
        assert shipping.quote(Decimal("80")) == ShippingQuote(cost=Decimal("7.5"), is_free=False)
        assert shipping.quote(Decimal("100")).is_free
        assert shipping.remaining_for_free_shipping(Decimal("80")) == Decimal("20")

    async def test_malformed_stored_value_falls_back(self, settings_client, query_cache):
        await settings_client.upsert("standardShippingRate", "cheap")
        shipping = ShippingSettings(settings_client)
        shipping.standard_rate  # starts the fetch
        await query_cache.settle()

        assert shipping.standard_rate == Decimal("5")
