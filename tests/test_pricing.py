from decimal import Decimal

import pytest

from tourops.services.pricing import (
    ChoicePricing,
    PricingConfig,
    TravelerPrices,
    balance_due,
    calculate_choice_price,
    calculate_choice_prices,
    calculate_price,
    round2,
)


def _config(**overrides) -> PricingConfig:
    values = {
        "adult_price": 100,
        "child_price": 70,
        "infant_price": 30,
        "commission_percent": 15,
        "markup_amount": 5,
        "markup_percent": 10,
        "coupon_percent": 20,
    }
    values.update(overrides)
    return PricingConfig(**values)


def test_worked_example_adult_price() -> None:
    result = calculate_price(TravelerPrices.of(100, 70, 30), _config())

    assert result.markup_price.adult == Decimal("115")
    assert result.discount_price.adult == Decimal("92")
    assert result.final_price.adult == Decimal("92.00")
    assert result.commission.adult == Decimal("13.80")
    assert result.net_price.adult == Decimal("78.20")


@pytest.mark.parametrize("base", ["0", "0.01", "19.99", "100", "1234.56"])
def test_identity_pipeline(base: str) -> None:
    config = _config(commission_percent=0, markup_amount=0, markup_percent=0, coupon_percent=0)
    result = calculate_price(TravelerPrices.of(base, base, base), config)
    assert result.final_price.adult == Decimal(base)
    assert result.final_price.infant == Decimal(base)


@pytest.mark.parametrize("commission", ["0", "7.5", "12.345", "33.33", "100"])
def test_net_plus_commission_equals_final(commission: str) -> None:
    config = _config(commission_percent=commission, markup_amount="3.33", markup_percent="17.5", coupon_percent="12.5")
    result = calculate_price(TravelerPrices.of("89.99", "61.17", "0.05"), config)
    for field in ("adult", "child", "infant"):
        assert getattr(result.net_price, field) + getattr(result.commission, field) == getattr(result.final_price, field)


def test_rounding_happens_only_at_final_price() -> None:
    result = calculate_price(TravelerPrices.of("10.005"), _config(commission_percent=0, markup_amount=0, markup_percent=0, coupon_percent=0))
    assert result.discount_price.adult == Decimal("10.005")
    assert result.final_price.adult == Decimal("10.01")


def test_not_included_price_is_a_separate_balance() -> None:
    config = _config(not_included_price=25)
    with_extra = calculate_price(config.base_price, config)
    without_extra = calculate_price(config.base_price, _config())

    assert with_extra == without_extra
    assert balance_due(config, adults=2, child=1) == Decimal("75.00")


def test_choice_price_missing_returns_none() -> None:
    config = _config(choice_pricing={"lower": ChoicePricing(Decimal("20"), Decimal("10"), Decimal("0"))})
    assert calculate_choice_price("upper", config) is None


def test_choice_price_adds_delta_to_base() -> None:
    config = _config(choice_pricing={"lower": ChoicePricing(Decimal("20"), Decimal("10"), Decimal("0"))})

    choice = calculate_choice_price("lower", config)
    expected = calculate_price(TravelerPrices.of(120, 80, 30), config)

    assert choice == expected
    assert choice.final_price.adult == round2((Decimal("120") + 5 + Decimal("12")) * Decimal("0.8"))


def test_choice_prices_cover_every_configured_choice() -> None:
    config = _config(
        choice_pricing={
            "lower": ChoicePricing(Decimal("20"), Decimal("10"), Decimal("0")),
            "upper": ChoicePricing(Decimal("35"), Decimal("25"), Decimal("0")),
        }
    )
    assert set(calculate_choice_prices(config)) == {"lower", "upper"}


def test_config_for_channel_reads_channel_fields() -> None:
    class FakeChannel:
        commission_percent = Decimal("15")
        markup_percent = Decimal("10")
        markup_amount = Decimal("5")

    config = PricingConfig.for_channel(TravelerPrices.of(100, 70, 30), FakeChannel(), coupon_percent=20)
    assert calculate_price(config.base_price, config).net_price.adult == Decimal("78.20")

    no_channel = PricingConfig.for_channel(TravelerPrices.of(100), None)
    assert no_channel.commission_percent == 0
    assert calculate_price(no_channel.base_price, no_channel).final_price.adult == Decimal("100.00")


def test_calculate_endpoint(client) -> None:
    response = client.post(
        "/v1/pricing/calculate",
        json={
            "config": {
                "adult_price": 100,
                "child_price": 70,
                "infant_price": 30,
                "commission_percent": 15,
                "markup_amount": 5,
                "markup_percent": 10,
                "coupon_percent": 20,
                "not_included_price": 10,
                "choice_pricing": {"lower": {"adult_price": 20, "child_price": 10}},
            },
            "adults": 2,
            "child": 1,
        },
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["calculation"]["final_price"]["adult"] == 92.0
    assert payload["calculation"]["net_price"]["adult"] == 78.2
    assert payload["balance_due"] == 30.0
    assert set(payload["choices"]) == {"lower"}


def test_calculate_endpoint_rejects_out_of_range_percent(client) -> None:
    response = client.post("/v1/pricing/calculate", json={"config": {"adult_price": 100, "coupon_percent": 150}})
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_product_quote_uses_channel(client) -> None:
    response = client.get("/v1/pricing/products/MDGC1D", params={"channel_id": "viator", "coupon_percent": 20})
    assert response.status_code == 200
    payload = response.json()
    assert payload["calculation"]["final_price"]["adult"] == 92.0
    assert payload["calculation"]["base_price"]["child"] == 70.0
    assert set(payload["choices"]) == {"choice-lower", "choice-upper"}


def test_product_quote_not_found(client) -> None:
    response = client.get("/v1/pricing/products/missing")
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "not_found"
