from tourops.models.entities import (
    Channel,
    Coupon,
    Customer,
    PaymentRecord,
    Product,
    ProductOptionChoice,
    Reservation,
    ReservationExpense,
    SyncCheckpoint,
    SyncRun,
    TeamMember,
    Tour,
    TourExpense,
)

__all__ = [
    "Channel",
    "Coupon",
    "Customer",
    "PaymentRecord",
    "Product",
    "ProductOptionChoice",
    "Reservation",
    "ReservationExpense",
    "SyncCheckpoint",
    "SyncRun",
    "TeamMember",
    "Tour",
    "TourExpense",
]
