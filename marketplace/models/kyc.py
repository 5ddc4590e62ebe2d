from marketplace.models.base import BaseModel, enum_column
from marketplace.extensions import db
from marketplace.enums import KYCStatus


class KYCRecord(BaseModel):
    __tablename__ = "kyc_records"

    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    status = enum_column(
        KYCStatus, "kyc_statuses", default=KYCStatus.PENDING, nullable=False, index=True
    )
    submitted_at = db.Column(db.DateTime, nullable=False)
    verified_at = db.Column(db.DateTime)
    rejection_reason = db.Column(db.Text)
    decided_by = db.Column(db.String(36), db.ForeignKey("users.id"))

    documents = db.relationship(
        "KYCDocument", backref="record", lazy="select", cascade="all, delete-orphan",
        order_by="KYCDocument.position",
    )

    def to_dict(self):
        data = super().to_dict()
        data["documents"] = [doc.to_dict() for doc in self.documents]
        return data


class KYCDocument(BaseModel):
    __tablename__ = "kyc_documents"

    record_id = db.Column(
        db.String(36),
        db.ForeignKey("kyc_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    type = db.Column(db.String(50), nullable=False)  # id_proof, address_proof, ...
    url = db.Column(db.String(500), nullable=False)
    verified = db.Column(db.Boolean, default=False, nullable=False)

    def to_dict(self):
        return {"type": self.type, "url": self.url, "verified": self.verified}
