import logging

from marketplace.extensions import db
from marketplace.models.kyc import KYCRecord, KYCDocument
from marketplace.models.user import User
from marketplace.models.base import utcnow
from marketplace.enums import KYCStatus, KYCAction, UserRole
from marketplace.exceptions import (
    ValidationError,
    NotFound,
    AlreadyDecided,
    ReasonRequired,
)
from marketplace.services.audit_service import AuditService
from marketplace.utils.helpers import is_blank, parse_enum
from marketplace.utils.kafka_utils import send_status_event

logger = logging.getLogger(__name__)


class KYCService:
    @staticmethod
    def submit(user_id: str, documents: list) -> KYCRecord:
        user = db.session.get(User, user_id)
        if not user or user.role != UserRole.STUDIO:
            raise NotFound("Studio account not found")
        if not documents:
            raise ValidationError("At least one document is required")
        if KYCRecord.query.filter_by(user_id=user_id).first():
            raise AlreadyDecided("Verification documents were already submitted")

        record = KYCRecord(user_id=user_id, status=KYCStatus.PENDING, submitted_at=utcnow())
        for position, doc in enumerate(documents):
            if is_blank(doc.get("type")) or is_blank(doc.get("url")):
                raise ValidationError("Each document needs a type and a url")
            record.documents.append(
                KYCDocument(position=position, type=doc["type"].strip(), url=doc["url"].strip())
            )

        try:
            db.session.add(record)
            db.session.flush()
            AuditService.log(
                "KYC_SUBMITTED", "kyc", record.id,
                f"KYC submitted with {len(documents)} document(s)", actor_id=user_id,
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        send_status_event("kyc", record.id, None, KYCStatus.PENDING, actor_id=user_id)
        return record

    @staticmethod
    def get_record(user_id: str) -> KYCRecord:
        record = KYCRecord.query.filter_by(user_id=user_id).first()
        if not record:
            raise NotFound("KYC record not found")
        return record

    @staticmethod
    def status(user_id: str) -> dict:
        record = KYCRecord.query.filter_by(user_id=user_id).first()
        if not record:
            return {"user_id": user_id, "status": KYCStatus.NOT_SUBMITTED.value, "documents": []}
        return record.to_dict()

    @staticmethod
    def get_records(status: str = None, page: int = 1, per_page: int = 20):
        query = KYCRecord.query
        if status:
            query = query.filter(KYCRecord.status == parse_enum(KYCStatus, status, "status"))
        return query.order_by(KYCRecord.submitted_at.asc()).paginate(
            page=page, per_page=per_page, error_out=False
        )

    @staticmethod
    def decide(user_id: str, action: str, reason: str = None, admin_id: str = None) -> KYCRecord:
        """Approve or reject a pending verification.

        Rejection needs a non-blank reason. Approved and rejected records are
        final, so deciding them again fails with ``AlreadyDecided``.
        """
        action = parse_enum(KYCAction, action, "action")
        if action == KYCAction.REJECT and is_blank(reason):
            raise ReasonRequired()

        record = KYCService.get_record(user_id)
        if KYCStatus(record.status) != KYCStatus.PENDING:
            raise AlreadyDecided(f"Verification already {record.status.value}")

        now = utcnow()
        if action == KYCAction.APPROVE:
            target = KYCStatus.APPROVED
            values = {"status": target, "verified_at": now, "rejection_reason": None}
        else:
            target = KYCStatus.REJECTED
            values = {"status": target, "rejection_reason": reason.strip()}
        values["decided_by"] = admin_id

        record_id = record.id
        try:
            if not KYCRecord.compare_and_set(record_id, KYCStatus.PENDING, values):
                raise AlreadyDecided("Verification was decided by another request")
            if target == KYCStatus.APPROVED:
                KYCDocument.query.filter_by(record_id=record_id).update(
                    {"verified": True}, synchronize_session=False
                )
                User.query.filter_by(id=user_id).update(
                    {"is_verified": True}, synchronize_session=False
                )
            AuditService.log(
                "KYC_DECIDED", "kyc", record_id,
                f"KYC {target.value} for user {user_id}",
                actor_id=admin_id,
                changes={"status": (KYCStatus.PENDING, target)},
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        db.session.expire_all()
        logger.info(f"KYC for {user_id} {target.value} by {admin_id or 'system'}")
        send_status_event("kyc", record_id, KYCStatus.PENDING, target, actor_id=admin_id)
        return db.session.get(KYCRecord, record_id)
