import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from marketplace.extensions import db
from marketplace.models.order import Order, OrderItem
from marketplace.models.return_request import ReturnRequest, ReturnEvidence, StudioFeedback
from marketplace.models.base import utcnow
from marketplace.enums import (
    OrderStatus,
    PaymentStatus,
    ItemType,
    ItemRefundStatus,
    ReturnStatus,
    ReturnDecision,
    ReturnType,
    ReturnReason,
    EvidenceType,
)
from marketplace.exceptions import (
    ValidationError,
    NotFound,
    NotEligible,
    EvidenceRequired,
    EvidenceLimitExceeded,
    IllegalTransition,
    ConcurrentUpdate,
)
from marketplace.services.audit_service import AuditService
from marketplace.utils.helpers import commit_with_sequence, allowed_file, is_blank, parse_enum
from marketplace.utils.kafka_utils import send_status_event

logger = logging.getLogger(__name__)

MAX_EVIDENCE = 5

EVIDENCE_EXTENSIONS = {
    EvidenceType.IMAGE: {"jpg", "jpeg", "png", "webp", "gif", "heic"},
    EvidenceType.VIDEO: {"mp4", "mov", "webm", "m4v"},
}

REFUNDABLE_PAYMENTS = {PaymentStatus.PAID, PaymentStatus.PARTIALLY_REFUNDED}

DECISION_STATUS = {
    ReturnDecision.APPROVE: ReturnStatus.APPROVED,
    ReturnDecision.REJECT: ReturnStatus.REJECTED,
}


class ReturnService:
    @staticmethod
    def has_open_request(order_id: str, item_id: str) -> bool:
        return (
            db.session.query(ReturnRequest.id)
            .filter(
                ReturnRequest.order_id == order_id,
                ReturnRequest.order_item_id == item_id,
                ReturnRequest.status != ReturnStatus.REJECTED,
            )
            .first()
            is not None
        )

    @staticmethod
    def is_eligible(order: Order, item: OrderItem) -> bool:
        """Delivered physical item with no live (non-rejected) request"""
        if order is None or item is None or item.order_id != order.id:
            return False
        return (
            order.status == OrderStatus.DELIVERED
            and item.item_type == ItemType.PRODUCT
            and not ReturnService.has_open_request(order.id, item.id)
        )

    @staticmethod
    def _validate_evidence(evidence: list) -> list:
        if not evidence:
            raise EvidenceRequired()
        if len(evidence) > MAX_EVIDENCE:
            raise EvidenceLimitExceeded()

        files = []
        for position, entry in enumerate(evidence):
            evidence_type = parse_enum(EvidenceType, entry.get("type"), "evidence type")
            if is_blank(entry.get("url")):
                raise ValidationError("Evidence URL is required")
            filename = entry.get("filename") or entry["url"].split("?", 1)[0].rsplit("/", 1)[-1]
            if "." in filename and not allowed_file(filename, EVIDENCE_EXTENSIONS[evidence_type]):
                raise ValidationError(f"'{filename}' is not a supported {evidence_type.value} file")
            files.append(
                ReturnEvidence(
                    position=position,
                    type=evidence_type,
                    url=entry["url"],
                    filename=entry.get("filename"),
                )
            )
        return files

    @staticmethod
    def submit(customer_id: str, order_id: str, item_id: str, type: str, reason: str,
               description: str, evidence: list) -> ReturnRequest:
        order = Order.query.filter_by(id=order_id, customer_id=customer_id).first()
        if not order:
            raise NotFound("Order not found")
        item = order.get_item(item_id)
        if not item:
            raise NotFound("Item not found in order")

        if not ReturnService.is_eligible(order, item):
            raise NotEligible("Item is not eligible for return or refund")
        if is_blank(description):
            raise ValidationError("Description is required")
        evidence_files = ReturnService._validate_evidence(evidence)

        request = ReturnRequest(
            order_id=order.id,
            order_item_id=item.id,
            customer_id=customer_id,
            seller_id=item.seller_id,
            type=parse_enum(ReturnType, type, "type"),
            reason=parse_enum(ReturnReason, reason, "reason"),
            description=description.strip(),
            status=ReturnStatus.PENDING,
            refund_amount=item.subtotal,
        )
        request.evidence = evidence_files
        order_ref, item_ref, item_name = order.id, item.id, item.name

        def write():
            # The row lock serializes submissions for the same line; re-check under it
            db.session.query(OrderItem).filter_by(id=item_ref).with_for_update().one()
            if ReturnService.has_open_request(order_ref, item_ref):
                raise NotEligible("Item already has an open return or refund request")
            db.session.add(request)
            db.session.flush()
            AuditService.log(
                "RETURN_SUBMITTED", "return_request", request.id,
                f"{request.type.value.title()} requested for {item_name}",
                actor_id=customer_id,
            )

        try:
            commit_with_sequence(request, "request_number", "RET", write)
        except IntegrityError:
            # A concurrent submission for the line committed first
            db.session.rollback()
            raise NotEligible("Item already has an open return or refund request")
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Return request {request.request_number} submitted for order {order.order_number}")
        send_status_event("return_request", request.id, None, ReturnStatus.PENDING, actor_id=customer_id)
        return request

    @staticmethod
    def get_request(request_id: str, customer_id: str = None, seller_id: str = None) -> ReturnRequest:
        request = db.session.get(ReturnRequest, request_id)
        if not request:
            raise NotFound("Return request not found")
        if customer_id and request.customer_id != customer_id:
            raise NotFound("Return request not found")
        if seller_id and request.seller_id != seller_id:
            raise NotFound("Return request not found")
        return request

    @staticmethod
    def get_requests(customer_id: str = None, seller_id: str = None, status: str = None,
                     page: int = 1, per_page: int = 20):
        query = ReturnRequest.query
        if customer_id:
            query = query.filter_by(customer_id=customer_id)
        if seller_id:
            query = query.filter_by(seller_id=seller_id)
        if status:
            query = query.filter(ReturnRequest.status == parse_enum(ReturnStatus, status, "status"))
        return query.order_by(ReturnRequest.created_at.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )

    @staticmethod
    def eligible_orders(customer_id: str, limit: int = 50) -> list:
        """Delivered orders with at least one product item still open for a request"""
        orders = (
            Order.query.filter(
                Order.customer_id == customer_id,
                Order.status == OrderStatus.DELIVERED,
                Order.items.any(OrderItem.item_type == ItemType.PRODUCT),
            )
            .order_by(Order.created_at.desc())
            .limit(limit)
            .all()
        )

        result = []
        for order in orders:
            items = [item for item in order.items if ReturnService.is_eligible(order, item)]
            if items:
                data = order.to_dict()
                data["items"] = [item.to_dict() for item in items]
                result.append(data)
        return result

    @staticmethod
    def _apply_refund(request: ReturnRequest):
        """Mark the returned item refunded and roll a captured payment forward"""
        item = request.order_item
        item.refund_status = ItemRefundStatus.REFUNDED

        order = request.order
        if order.payment_status not in REFUNDABLE_PAYMENTS:
            # Nothing was captured, so there is nothing to give back
            return
        if all(i.refund_status == ItemRefundStatus.REFUNDED for i in order.items):
            order.payment_status = PaymentStatus.REFUNDED
        else:
            order.payment_status = PaymentStatus.PARTIALLY_REFUNDED

    @staticmethod
    def decide(request_id: str, decision: str, admin_id: str = None, notes: str = None,
               refund_amount=None) -> ReturnRequest:
        request = ReturnService.get_request(request_id)
        decision = parse_enum(ReturnDecision, decision, "decision")
        target = DECISION_STATUS[decision]
        current = ReturnStatus(request.status)

        if current == target:
            return request
        if current != ReturnStatus.PENDING:
            raise IllegalTransition(f"Return request is already {current.value}")

        values = {
            "status": target,
            "reviewed_by": admin_id,
            "reviewed_at": utcnow(),
            "review_notes": notes or "",
        }
        if decision == ReturnDecision.APPROVE:
            if refund_amount is not None:
                refund_amount = Decimal(str(refund_amount))
                if refund_amount < 0 or refund_amount > request.order_item.subtotal:
                    raise ValidationError("Refund amount must be between 0 and the item total")
                values["refund_amount"] = refund_amount
        else:
            values["refund_amount"] = Decimal("0")

        try:
            if not ReturnRequest.compare_and_set(request.id, current, values):
                db.session.rollback()
                fresh = db.session.get(ReturnRequest, request_id)
                if fresh is not None and fresh.status == target:
                    return fresh
                raise ConcurrentUpdate("Return request was updated by another request")

            if decision == ReturnDecision.APPROVE:
                ReturnService._apply_refund(request)
            AuditService.log(
                "RETURN_DECIDED", "return_request", request.id,
                f"Return request {request.request_number} {target.value}",
                actor_id=admin_id,
                changes={"status": (current, target)},
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        request = db.session.get(ReturnRequest, request_id)
        logger.info(f"Return request {request.request_number} {current.value} -> {target.value}")
        send_status_event("return_request", request.id, current, target, actor_id=admin_id)
        return request

    @staticmethod
    def add_feedback(request_id: str, seller_id: str, message: str) -> StudioFeedback:
        request = ReturnService.get_request(request_id, seller_id=seller_id)
        if is_blank(message):
            raise ValidationError("Message is required")

        feedback = StudioFeedback(
            request_id=request.id,
            submitted_by=seller_id,
            submitted_at=utcnow(),
            message=message.strip(),
        )
        db.session.add(feedback)
        db.session.commit()
        return feedback
