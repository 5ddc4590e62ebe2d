from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = "customer"
    STUDIO = "studio"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class PaymentMethod(str, Enum):
    RAZORPAY = "razorpay"
    STRIPE = "stripe"
    PAYPAL = "paypal"
    COD = "cod"


class ItemType(str, Enum):
    PRODUCT = "product"
    COURSE = "course"
    WORKSHOP = "workshop"


class ItemRefundStatus(str, Enum):
    NONE = "none"
    REFUNDED = "refunded"


class ShippingRateType(str, Enum):
    FLAT = "flat"
    WEIGHT_BASED = "weight_based"
    PRICE_BASED = "price_based"
    FREE = "free"


class ReturnType(str, Enum):
    RETURN = "return"
    REFUND = "refund"


class ReturnReason(str, Enum):
    DAMAGED = "damaged"
    WRONG_ITEM = "wrong_item"
    NOT_AS_DESCRIBED = "not_as_described"
    DEFECTIVE = "defective"
    OTHER = "other"


class ReturnStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReturnDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class EvidenceType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING_CUSTOMER = "waiting_customer"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketCategory(str, Enum):
    ORDER = "order"
    PAYMENT = "payment"
    REFUND = "refund"
    PRODUCT = "product"
    ACCOUNT = "account"
    TECHNICAL = "technical"
    OTHER = "other"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketRelatedType(str, Enum):
    ORDER = "order"
    PRODUCT = "product"
    PAYOUT = "payout"


class ReviewTargetType(str, Enum):
    PRODUCT = "product"
    COURSE = "course"
    WORKSHOP = "workshop"


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FLAGGED = "flagged"


class KYCStatus(str, Enum):
    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class KYCAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class AuditSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
