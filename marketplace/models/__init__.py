from .user import User
from .order import Order, OrderItem, OrderTrackingEvent
from .shipping import ShippingZone, ShippingRate
from .return_request import ReturnRequest, ReturnEvidence, StudioFeedback
from .ticket import SupportTicket, TicketReply
from .review import Review
from .kyc import KYCRecord, KYCDocument
from .audit import AuditLog

__all__ = [
    "User",
    "Order",
    "OrderItem",
    "OrderTrackingEvent",
    "ShippingZone",
    "ShippingRate",
    "ReturnRequest",
    "ReturnEvidence",
    "StudioFeedback",
    "SupportTicket",
    "TicketReply",
    "Review",
    "KYCRecord",
    "KYCDocument",
    "AuditLog",
]
