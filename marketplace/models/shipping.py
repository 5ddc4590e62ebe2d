from marketplace.models.base import BaseModel, enum_column
from marketplace.extensions import db
from marketplace.enums import ShippingRateType


class ShippingZone(BaseModel):
    __tablename__ = "shipping_zones"

    name = db.Column(db.String(100), nullable=False)
    # Empty list means every country; states optionally narrow the match
    countries = db.Column(db.JSON, nullable=False, default=list)
    states = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_default = db.Column(db.Boolean, default=False, nullable=False)

    rates = db.relationship(
        "ShippingRate",
        backref="zone",
        lazy="select",
        cascade="all, delete-orphan",
        order_by="ShippingRate.position",
    )

    def to_dict(self, include_rates=True):
        data = super().to_dict()
        if include_rates:
            data["rates"] = [rate.to_dict() for rate in self.rates]
        return data


class ShippingRate(BaseModel):
    __tablename__ = "shipping_rates"

    zone_id = db.Column(
        db.String(36),
        db.ForeignKey("shipping_zones.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    name = db.Column(db.String(100), nullable=False)
    type = enum_column(
        ShippingRateType, "shipping_rate_types", default=ShippingRateType.FLAT, nullable=False
    )
    amount = db.Column(db.Numeric(15, 2), default=0, nullable=False)

    # Tier bounds: weight for weight_based, order value for price_based
    min_weight = db.Column(db.Numeric(10, 3))
    max_weight = db.Column(db.Numeric(10, 3))
    min_order_value = db.Column(db.Numeric(15, 2))
    max_order_value = db.Column(db.Numeric(15, 2))

    min_days = db.Column(db.Integer, default=3, nullable=False)
    max_days = db.Column(db.Integer, default=7, nullable=False)

    def bounds(self):
        """Tier bounds the resolver tests against: weight or order value"""
        if self.type == ShippingRateType.WEIGHT_BASED:
            return self.min_weight, self.max_weight
        if self.type == ShippingRateType.PRICE_BASED:
            return self.min_order_value, self.max_order_value
        return None, None

    def to_dict(self):
        data = super().to_dict()
        data.pop("zone_id", None)
        data["estimated_days"] = {"min": data.pop("min_days"), "max": data.pop("max_days")}
        return data
