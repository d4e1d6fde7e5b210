import os

os.environ.setdefault("TOUROPS_CACHE_ENABLED", "false")
os.environ.setdefault("TOUROPS_DATABASE_URL", "sqlite://")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tourops.core.cache import cache_client
from tourops.core.config import get_settings
from tourops.db.base import Base
from tourops.db.seed import seed_channels
from tourops.db.session import enable_sqlite_savepoints
from tourops.main import app
from tourops.models import Channel, Coupon, Product, ProductOptionChoice, Reservation

TEST_DB_URL = "sqlite://"


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {get_settings().api_token}"}


@pytest.fixture(autouse=True)
def clear_cache():
    cache_client.delete_pattern("*")
    yield
    cache_client.delete_pattern("*")


@pytest.fixture()
def session() -> Session:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    seed_channels(db)

    canyon = Product(
        id="MDGC1D",
        name="그랜드캐니언 당일투어",
        name_en="Grand Canyon Day Tour",
        category="day-tour",
        base_price=Decimal("100.00"),
        not_included_price=Decimal("10.00"),
    )
    sunrise = Product(
        id="MDGCSUNRISE",
        name="그랜드캐니언 일출투어",
        name_en="Grand Canyon Sunrise Tour",
        category="day-tour",
        base_price=Decimal("200.00"),
        child_price=Decimal("150.00"),
        infant_price=Decimal("0.00"),
    )
    db.add_all([canyon, sunrise])
    db.add(
        Channel(
            id="viator",
            name="Viator",
            type="ota",
            commission_percent=Decimal("15"),
            markup_percent=Decimal("10"),
            markup_amount=Decimal("5"),
        )
    )
    db.add_all(
        [
            ProductOptionChoice(
                id="choice-lower",
                product_id="MDGC1D",
                option_id="opt-canyon",
                name="Lower Antelope",
                adult_price_adjustment=Decimal("20"),
                child_price_adjustment=Decimal("10"),
                infant_price_adjustment=None,
            ),
            ProductOptionChoice(
                id="choice-upper",
                product_id="MDGC1D",
                option_id="opt-canyon",
                name="Upper Antelope",
                adult_price_adjustment=Decimal("35"),
                child_price_adjustment=Decimal("25"),
                infant_price_adjustment=Decimal("0"),
            ),
        ]
    )
    db.add_all(
        [
            Reservation(
                id="R-1",
                product_id="MDGC1D",
                channel_id="default",
                tour_date=date(2025, 3, 14),
                adults=2,
                child=1,
                infant=1,
                total_people=4,
                selected_options={"opt-canyon": ["choice-lower"]},
                selected_option_prices={"opt-canyon_choice-lower_adult": 5},
            ),
            Reservation(id="R-2", product_id="UNKNOWN", adults=3),
        ]
    )
    db.add_all(
        [
            Coupon(coupon_code="WELCOME10", discount_type="percentage", percentage_value=Decimal("10")),
            Coupon(coupon_code="FIX20", discount_type="fixed", fixed_value=Decimal("20")),
            Coupon(coupon_code="COMBO", fixed_value=Decimal("10"), percentage_value=Decimal("10")),
            Coupon(coupon_code="OLD", discount_type="percentage", percentage_value=Decimal("5"), end_date=date(2020, 1, 1)),
            Coupon(coupon_code="FUTURE", discount_type="percentage", percentage_value=Decimal("5"), start_date=date(2999, 1, 1)),
            Coupon(coupon_code="SUNRISE5", discount_type="percentage", percentage_value=Decimal("5"), product_id="MDGCSUNRISE"),
            Coupon(coupon_code="PAUSED", discount_type="percentage", percentage_value=Decimal("50"), status="inactive"),
        ]
    )
    db.commit()

    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture()
def client(session: Session) -> TestClient:
    from tourops.api.deps import get_session_factory
    from tourops.db.session import get_db

    def _get_db() -> Session:
        return session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: (lambda: session)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
