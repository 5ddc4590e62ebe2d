from marketplace.models.base import BaseModel, enum_column
from marketplace.extensions import db
from marketplace.enums import AuditSeverity


class AuditLog(BaseModel):
    __tablename__ = "audit_logs"

    actor_id = db.Column(db.String(36), db.ForeignKey("users.id"), index=True)
    action = db.Column(db.String(64), nullable=False, index=True)
    resource = db.Column(db.String(64), nullable=False, index=True)
    resource_id = db.Column(db.String(36), index=True)
    description = db.Column(db.String(500), nullable=False)
    changes = db.Column(db.JSON)
    severity = enum_column(
        AuditSeverity, "audit_severities", default=AuditSeverity.INFO, nullable=False
    )
