from marshmallow import Schema, fields, validate
from marketplace.enums import (
    ItemType,
    PaymentMethod,
    OrderStatus,
    ShippingRateType,
    ReturnType,
    ReturnReason,
    ReturnDecision,
    EvidenceType,
    TicketCategory,
    TicketPriority,
    TicketStatus,
    TicketRelatedType,
    ReviewTargetType,
    ReviewStatus,
    KYCAction,
)
from .user_schema import UserRegisterSchema, UserLoginSchema


def _values(enum_class, exclude=()):
    return [member.value for member in enum_class if member not in exclude]


# Shipping

class DestinationSchema(Schema):
    country = fields.Str(required=True, validate=validate.Length(min=2, max=3))
    state = fields.Str(allow_none=True)


class PackageSchema(Schema):
    weight = fields.Decimal(load_default=0, validate=validate.Range(min=0))
    price = fields.Decimal(load_default=0, validate=validate.Range(min=0))


class ShippingResolveSchema(Schema):
    destination = fields.Nested(DestinationSchema, required=True)
    package = fields.Nested(PackageSchema, load_default=dict)


class ShippingRateSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    type = fields.Str(required=True, validate=validate.OneOf(_values(ShippingRateType)))
    amount = fields.Decimal(load_default=0, validate=validate.Range(min=0))
    min_weight = fields.Decimal(allow_none=True, validate=validate.Range(min=0))
    max_weight = fields.Decimal(allow_none=True, validate=validate.Range(min=0))
    min_order_value = fields.Decimal(allow_none=True, validate=validate.Range(min=0))
    max_order_value = fields.Decimal(allow_none=True, validate=validate.Range(min=0))
    min_days = fields.Int(load_default=3, validate=validate.Range(min=0))
    max_days = fields.Int(load_default=7, validate=validate.Range(min=0))


class ShippingZoneCreateSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    countries = fields.List(fields.Str(), load_default=list)
    states = fields.List(fields.Str(), load_default=list)
    is_active = fields.Bool(load_default=True)
    is_default = fields.Bool(load_default=False)
    rates = fields.List(fields.Nested(ShippingRateSchema), load_default=list)


class ShippingZoneUpdateSchema(Schema):
    name = fields.Str(validate=validate.Length(min=1, max=100))
    countries = fields.List(fields.Str())
    states = fields.List(fields.Str())
    is_active = fields.Bool()
    is_default = fields.Bool()
    rates = fields.List(fields.Nested(ShippingRateSchema))


# Orders

class OrderItemSchema(Schema):
    item_type = fields.Str(required=True, validate=validate.OneOf(_values(ItemType)))
    item_id = fields.Str(required=True)
    seller_id = fields.Str(allow_none=True)
    name = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    price = fields.Decimal(required=True, places=2, validate=validate.Range(min=0))
    quantity = fields.Int(required=True, validate=validate.Range(min=1))
    image = fields.Str(allow_none=True, validate=validate.Length(max=500))


class OrderCreateSchema(Schema):
    items = fields.List(
        fields.Nested(OrderItemSchema), required=True, validate=validate.Length(min=1)
    )
    shipping_address = fields.Dict(allow_none=True)
    payment_method = fields.Str(
        load_default=PaymentMethod.RAZORPAY.value, validate=validate.OneOf(_values(PaymentMethod))
    )
    shipping_amount = fields.Decimal(load_default=0, places=2, validate=validate.Range(min=0))
    tax = fields.Decimal(load_default=0, places=2, validate=validate.Range(min=0))
    discount = fields.Decimal(load_default=0, places=2, validate=validate.Range(min=0))


class TrackingInfoSchema(Schema):
    # Carrier and tracking number are checked by the status machine
    carrier = fields.Str(allow_none=True)
    tracking_number = fields.Str(allow_none=True)
    tracking_url = fields.Str(allow_none=True, validate=validate.Length(max=500))
    estimated_delivery = fields.DateTime(allow_none=True)


class OrderStatusUpdateSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(_values(OrderStatus)))
    tracking_info = fields.Nested(TrackingInfoSchema, allow_none=True)
    message = fields.Str(allow_none=True, validate=validate.Length(max=500))


class OrderUpdateSchema(Schema):
    status = fields.Str(validate=validate.OneOf(_values(OrderStatus)))
    tracking_info = fields.Nested(TrackingInfoSchema, allow_none=True)
    message = fields.Str(allow_none=True, validate=validate.Length(max=500))


# Returns

class ReturnEvidenceSchema(Schema):
    type = fields.Str(required=True, validate=validate.OneOf(_values(EvidenceType)))
    url = fields.Str(required=True, validate=validate.Length(min=1, max=500))
    filename = fields.Str(allow_none=True)


class ReturnCreateSchema(Schema):
    order_id = fields.Str(required=True)
    item_id = fields.Str(required=True)
    type = fields.Str(required=True, validate=validate.OneOf(_values(ReturnType)))
    reason = fields.Str(required=True, validate=validate.OneOf(_values(ReturnReason)))
    description = fields.Str(required=True, validate=validate.Length(max=2000))
    # Count limits are enforced by the workflow so they map to their own error codes
    evidence = fields.List(fields.Nested(ReturnEvidenceSchema), load_default=list)


class ReturnDecisionSchema(Schema):
    decision = fields.Str(required=True, validate=validate.OneOf(_values(ReturnDecision)))
    notes = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    refund_amount = fields.Decimal(allow_none=True, places=2, validate=validate.Range(min=0))


class StudioFeedbackSchema(Schema):
    message = fields.Str(required=True, validate=validate.Length(min=1, max=2000))


# Support

class TicketCreateSchema(Schema):
    subject = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    description = fields.Str(required=True, validate=validate.Length(min=1, max=5000))
    category = fields.Str(
        load_default=TicketCategory.OTHER.value, validate=validate.OneOf(_values(TicketCategory))
    )
    priority = fields.Str(
        load_default=TicketPriority.MEDIUM.value, validate=validate.OneOf(_values(TicketPriority))
    )
    related_type = fields.Str(allow_none=True, validate=validate.OneOf(_values(TicketRelatedType)))
    related_id = fields.Str(allow_none=True)


class TicketReplySchema(Schema):
    message = fields.Str(required=True, validate=validate.Length(min=1, max=5000))


class TicketUpdateSchema(Schema):
    status = fields.Str(validate=validate.OneOf(_values(TicketStatus)))
    priority = fields.Str(validate=validate.OneOf(_values(TicketPriority)))
    assigned_to = fields.Str(allow_none=True)


# Reviews

class ReviewCreateSchema(Schema):
    target_type = fields.Str(required=True, validate=validate.OneOf(_values(ReviewTargetType)))
    target_id = fields.Str(required=True)
    rating = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=5))
    title = fields.Str(allow_none=True, validate=validate.Length(max=150))
    comment = fields.Str(required=True, validate=validate.Length(min=1, max=2000))


_MODERATION_STATUSES = _values(ReviewStatus, exclude=(ReviewStatus.PENDING,))


class ReviewModerateSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(_MODERATION_STATUSES))


class ReviewBulkModerateSchema(Schema):
    review_ids = fields.List(fields.Str(), required=True, validate=validate.Length(min=1, max=100))
    status = fields.Str(required=True, validate=validate.OneOf(_MODERATION_STATUSES))


class ReviewReplySchema(Schema):
    message = fields.Str(required=True, validate=validate.Length(min=1, max=2000))


# KYC

class KYCDocumentSchema(Schema):
    type = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    url = fields.Str(required=True, validate=validate.Length(min=1, max=500))


class KYCSubmitSchema(Schema):
    documents = fields.List(
        fields.Nested(KYCDocumentSchema), required=True, validate=validate.Length(min=1)
    )


class KYCDecisionSchema(Schema):
    action = fields.Str(required=True, validate=validate.OneOf(_values(KYCAction)))
    # Blank reasons on rejection are reported as reason_required by the workflow
    reason = fields.Str(allow_none=True)
