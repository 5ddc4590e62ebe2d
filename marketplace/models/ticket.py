from marketplace.models.base import BaseModel, enum_column, utcnow
from marketplace.extensions import db
from marketplace.enums import TicketStatus, TicketCategory, TicketPriority, TicketRelatedType


class SupportTicket(BaseModel):
    __tablename__ = "support_tickets"

    ticket_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    subject = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = enum_column(
        TicketCategory, "ticket_categories", default=TicketCategory.OTHER, nullable=False
    )
    priority = enum_column(
        TicketPriority, "ticket_priorities", default=TicketPriority.MEDIUM, nullable=False
    )
    status = enum_column(
        TicketStatus, "ticket_statuses", default=TicketStatus.OPEN, nullable=False, index=True
    )
    related_type = enum_column(TicketRelatedType, "ticket_related_types", nullable=True)
    related_id = db.Column(db.String(36))
    assigned_to = db.Column(db.String(36), db.ForeignKey("users.id"))
    resolved_at = db.Column(db.DateTime)
    closed_at = db.Column(db.DateTime)

    replies = db.relationship(
        "TicketReply", backref="ticket", lazy="select", cascade="all, delete-orphan",
        order_by="TicketReply.sequence",
    )

    def to_dict(self, include_replies=False):
        data = super().to_dict()
        data["reply_count"] = len(self.replies)
        if include_replies:
            data["replies"] = [reply.to_dict() for reply in self.replies]
        return data


class TicketReply(BaseModel):
    __tablename__ = "ticket_replies"

    ticket_id = db.Column(
        db.String(36),
        db.ForeignKey("support_tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence = db.Column(db.Integer, nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_staff = db.Column(db.Boolean, default=False, nullable=False)
    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint("ticket_id", "sequence"),)

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "message": self.message,
            "is_staff": self.is_staff,
            "timestamp": self.timestamp.isoformat(),
        }
