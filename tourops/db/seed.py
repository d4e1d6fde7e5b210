from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from tourops.models import Channel

DEFAULT_CHANNELS = [
    ("default", "Direct", Decimal("0"), Decimal("0"), Decimal("0")),
]


def seed_channels(db: Session) -> None:
    existing = {row[0] for row in db.execute(select(Channel.id)).all()}
    for channel_id, name, commission, markup_percent, markup_amount in DEFAULT_CHANNELS:
        if channel_id not in existing:
            db.add(
                Channel(
                    id=channel_id,
                    name=name,
                    commission_percent=commission,
                    markup_percent=markup_percent,
                    markup_amount=markup_amount,
                )
            )
    db.commit()
