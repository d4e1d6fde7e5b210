import pytest

from tourops.services.payments import to_minor_units


@pytest.mark.parametrize(
    ("amount", "currency", "expected"),
    [
        ("92.00", "USD", 9200),
        ("0.50", "usd", 50),
        ("10.005", "USD", 1001),
        ("125000", "KRW", 125000),
        ("0", "KRW", 0),
        ("99.5", "KRW", 100),
    ],
)
def test_to_minor_units(amount: str, currency: str, expected: int) -> None:
    assert to_minor_units(amount, currency) == expected


def test_usd_minimum_is_enforced() -> None:
    with pytest.raises(ValueError, match="at least"):
        to_minor_units("0.49", "USD")


def test_unsupported_currency() -> None:
    with pytest.raises(ValueError, match="Unsupported currency"):
        to_minor_units("10", "EUR")


def test_negative_amount() -> None:
    with pytest.raises(ValueError, match="negative"):
        to_minor_units("-1", "KRW")


def test_payment_amount_endpoint(client) -> None:
    response = client.post("/v1/payments/amount", json={"amount": 78.2, "currency": "usd"})
    assert response.status_code == 200
    assert response.json() == {"amount": 78.2, "currency": "USD", "minor_units": 7820}


def test_payment_amount_below_minimum(client) -> None:
    response = client.post("/v1/payments/amount", json={"amount": 0.3, "currency": "USD"})
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "validation_error"
