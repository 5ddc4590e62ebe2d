from marketplace.models.base import BaseModel, enum_column, utcnow
from marketplace.extensions import db
from marketplace.enums import ReturnType, ReturnReason, ReturnStatus, EvidenceType


class ReturnRequest(BaseModel):
    __tablename__ = "return_requests"
    __table_args__ = (
        # At most one live (not rejected) request per order line
        db.Index(
            "uq_return_requests_live_item",
            "order_item_id",
            unique=True,
            postgresql_where=db.text("status <> 'rejected'"),
            sqlite_where=db.text("status <> 'rejected'"),
        ),
    )

    request_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id"), nullable=False, index=True
    )
    order_item_id = db.Column(
        db.String(36), db.ForeignKey("order_items.id"), nullable=False, index=True
    )
    customer_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    seller_id = db.Column(db.String(36), db.ForeignKey("users.id"), index=True)
    type = enum_column(ReturnType, "return_types", nullable=False)
    reason = enum_column(ReturnReason, "return_reasons", nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = enum_column(
        ReturnStatus, "return_statuses", default=ReturnStatus.PENDING, nullable=False, index=True
    )
    refund_amount = db.Column(db.Numeric(15, 2), default=0, nullable=False)

    # Admin review
    reviewed_by = db.Column(db.String(36), db.ForeignKey("users.id"))
    reviewed_at = db.Column(db.DateTime)
    review_notes = db.Column(db.Text)

    order = db.relationship("Order", foreign_keys=[order_id])
    order_item = db.relationship("OrderItem", foreign_keys=[order_item_id])
    evidence = db.relationship(
        "ReturnEvidence", backref="request", lazy="select", cascade="all, delete-orphan",
        order_by="ReturnEvidence.position",
    )
    studio_feedback = db.relationship(
        "StudioFeedback", backref="request", lazy="select", cascade="all, delete-orphan",
        order_by="StudioFeedback.submitted_at",
    )

    def to_dict(self, include_details=False):
        data = super().to_dict()
        data["order_number"] = self.order.order_number if self.order else None
        data["item"] = self.order_item.to_dict() if self.order_item else None
        data["evidence"] = [e.to_dict() for e in self.evidence]
        if include_details:
            data["studio_feedback"] = [f.to_dict() for f in self.studio_feedback]
        return data


class ReturnEvidence(BaseModel):
    __tablename__ = "return_evidence"

    request_id = db.Column(
        db.String(36),
        db.ForeignKey("return_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    type = enum_column(EvidenceType, "evidence_types", nullable=False)
    url = db.Column(db.String(500), nullable=False)
    filename = db.Column(db.String(255))

    def to_dict(self):
        return {"type": self.type.value, "url": self.url, "filename": self.filename}


class StudioFeedback(BaseModel):
    __tablename__ = "return_studio_feedback"

    request_id = db.Column(
        db.String(36),
        db.ForeignKey("return_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    submitted_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    submitted_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    message = db.Column(db.Text, nullable=False)

    def to_dict(self):
        return {
            "submitted_by": self.submitted_by,
            "submitted_at": self.submitted_at.isoformat(),
            "message": self.message,
        }
