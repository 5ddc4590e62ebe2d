from marketplace.models.base import BaseModel, enum_column, utcnow
from marketplace.extensions import db
from marketplace.enums import (
    OrderStatus,
    PaymentStatus,
    PaymentMethod,
    ItemType,
    ItemRefundStatus,
)


class Order(BaseModel):
    __tablename__ = "orders"

    order_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    customer_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    status = enum_column(
        OrderStatus, "order_statuses", default=OrderStatus.PENDING, nullable=False, index=True
    )
    payment_status = enum_column(
        PaymentStatus, "payment_statuses", default=PaymentStatus.PENDING, nullable=False
    )
    payment_method = enum_column(
        PaymentMethod, "payment_methods", default=PaymentMethod.RAZORPAY, nullable=False
    )

    # Pricing
    subtotal = db.Column(db.Numeric(15, 2), nullable=False)
    shipping_amount = db.Column(db.Numeric(15, 2), default=0, nullable=False)
    tax = db.Column(db.Numeric(15, 2), default=0, nullable=False)
    discount = db.Column(db.Numeric(15, 2), default=0, nullable=False)
    total = db.Column(db.Numeric(15, 2), nullable=False)

    # Physical items only
    shipping_address = db.Column(db.JSON)

    # Shipping tracking
    carrier = db.Column(db.String(100))
    tracking_number = db.Column(db.String(100))
    tracking_url = db.Column(db.String(500))
    estimated_delivery = db.Column(db.DateTime)

    shipped_at = db.Column(db.DateTime)
    delivered_at = db.Column(db.DateTime)
    cancelled_at = db.Column(db.DateTime)
    refunded_at = db.Column(db.DateTime)

    # Relationships
    items = db.relationship(
        "OrderItem", backref="order", lazy="select", cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )
    tracking_history = db.relationship(
        "OrderTrackingEvent", backref="order", lazy="select", cascade="all, delete-orphan",
        order_by="OrderTrackingEvent.sequence",
    )

    @property
    def has_tracking(self) -> bool:
        return bool(self.carrier and self.tracking_number)

    @property
    def requires_shipping(self) -> bool:
        return any(item.item_type == ItemType.PRODUCT for item in self.items)

    def get_item(self, item_id: str):
        return next((item for item in self.items if item.id == item_id), None)

    def calculate_totals(self):
        self.subtotal = sum((item.subtotal for item in self.items), 0)
        self.total = self.subtotal + self.shipping_amount + self.tax - self.discount
        return self.total

    def tracking_dict(self):
        if not self.has_tracking:
            return None
        return {
            "carrier": self.carrier,
            "tracking_number": self.tracking_number,
            "tracking_url": self.tracking_url,
            "estimated_delivery": (
                self.estimated_delivery.isoformat() if self.estimated_delivery else None
            ),
        }

    def to_dict(self, include_items=False):
        data = super().to_dict()
        for key in ("carrier", "tracking_number", "tracking_url", "estimated_delivery"):
            data.pop(key, None)
        data["shipping_tracking"] = self.tracking_dict()
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
            data["tracking_history"] = [event.to_dict() for event in self.tracking_history]
        return data


class OrderItem(BaseModel):
    __tablename__ = "order_items"

    order_id = db.Column(
        db.String(36),
        db.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    item_type = enum_column(ItemType, "item_types", nullable=False)
    item_id = db.Column(db.String(36), nullable=False, index=True)
    seller_id = db.Column(db.String(36), db.ForeignKey("users.id"), index=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Numeric(15, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    image = db.Column(db.String(500))
    refund_status = enum_column(
        ItemRefundStatus, "item_refund_statuses", default=ItemRefundStatus.NONE, nullable=False
    )

    @property
    def subtotal(self):
        return self.price * self.quantity

    def to_dict(self):
        data = super().to_dict()
        data["subtotal"] = float(self.subtotal)
        return data


class OrderTrackingEvent(BaseModel):
    """One row per status change, in the order they were applied"""

    __tablename__ = "order_tracking_events"

    order_id = db.Column(
        db.String(36),
        db.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence = db.Column(db.Integer, nullable=False)
    status = enum_column(OrderStatus, "order_statuses", nullable=False)
    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)
    message = db.Column(db.String(500), nullable=False)
    updated_by = db.Column(db.String(36), db.ForeignKey("users.id"))

    __table_args__ = (db.UniqueConstraint("order_id", "sequence"),)

    def to_dict(self):
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "updated_by": self.updated_by,
        }
