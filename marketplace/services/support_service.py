import logging

from sqlalchemy import func

from marketplace.extensions import db
from marketplace.models.ticket import SupportTicket, TicketReply
from marketplace.models.base import utcnow
from marketplace.enums import TicketStatus, TicketCategory, TicketPriority, TicketRelatedType
from marketplace.exceptions import ValidationError, NotFound, IllegalTransition, ConcurrentUpdate
from marketplace.services.audit_service import AuditService
from marketplace.utils.helpers import commit_with_sequence, is_blank, parse_enum
from marketplace.utils.kafka_utils import send_status_event

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {TicketStatus.RESOLVED, TicketStatus.CLOSED}

# Resolved and closed tickets stay closed; reopening is not supported
TICKET_TRANSITIONS = {
    TicketStatus.OPEN: {
        TicketStatus.IN_PROGRESS, TicketStatus.WAITING_CUSTOMER,
        TicketStatus.RESOLVED, TicketStatus.CLOSED,
    },
    TicketStatus.IN_PROGRESS: {
        TicketStatus.WAITING_CUSTOMER, TicketStatus.RESOLVED, TicketStatus.CLOSED,
    },
    TicketStatus.WAITING_CUSTOMER: {
        TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED, TicketStatus.CLOSED,
    },
    TicketStatus.RESOLVED: set(),
    TicketStatus.CLOSED: set(),
}


class SupportService:
    @staticmethod
    def create_ticket(user_id: str, subject: str, description: str, category: str = None,
                      priority: str = None, related_type: str = None,
                      related_id: str = None) -> SupportTicket:
        if is_blank(subject) or is_blank(description):
            raise ValidationError("Subject and description are required")
        if bool(related_type) != bool(related_id):
            raise ValidationError("Related entity needs both a type and an id")

        ticket = SupportTicket(
            user_id=user_id,
            subject=subject.strip(),
            description=description.strip(),
            category=parse_enum(TicketCategory, category or TicketCategory.OTHER, "category"),
            priority=parse_enum(TicketPriority, priority or TicketPriority.MEDIUM, "priority"),
            status=TicketStatus.OPEN,
            related_type=parse_enum(TicketRelatedType, related_type, "related type") if related_type else None,
            related_id=related_id,
        )
        commit_with_sequence(ticket, "ticket_number", "TKT", lambda: db.session.add(ticket))

        logger.info(f"Ticket {ticket.ticket_number} opened by {user_id}")
        return ticket

    @staticmethod
    def get_ticket(ticket_id: str, user_id: str = None) -> SupportTicket:
        ticket = db.session.get(SupportTicket, ticket_id)
        if not ticket or (user_id and ticket.user_id != user_id):
            raise NotFound("Ticket not found")
        return ticket

    @staticmethod
    def get_tickets(user_id: str = None, status: str = None, priority: str = None,
                    page: int = 1, per_page: int = 20):
        query = SupportTicket.query
        if user_id:
            query = query.filter_by(user_id=user_id)
        if status:
            query = query.filter(SupportTicket.status == parse_enum(TicketStatus, status, "status"))
        if priority:
            query = query.filter(SupportTicket.priority == parse_enum(TicketPriority, priority, "priority"))
        return query.order_by(SupportTicket.created_at.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )

    @staticmethod
    def status_counts(user_id: str = None) -> dict:
        query = db.session.query(SupportTicket.status, func.count(SupportTicket.id))
        if user_id:
            query = query.filter(SupportTicket.user_id == user_id)
        counts = {status.value: 0 for status in TicketStatus}
        for status, count in query.group_by(SupportTicket.status).all():
            counts[TicketStatus(status).value] = count
        counts["total"] = sum(counts.values())
        return counts

    @staticmethod
    def reply(ticket_id: str, user_id: str, message: str, is_staff: bool = False,
              owner_id: str = None) -> TicketReply:
        """Append a reply; the ticket status is left as it is"""
        ticket = SupportService.get_ticket(ticket_id, owner_id)
        if is_blank(message):
            raise ValidationError("Message is required")
        if TicketStatus(ticket.status) in TERMINAL_STATUSES:
            raise IllegalTransition(f"Ticket is {ticket.status.value}; replies are closed")

        last = (
            db.session.query(func.max(TicketReply.sequence))
            .filter(TicketReply.ticket_id == ticket.id)
            .scalar()
        )
        reply = TicketReply(
            ticket_id=ticket.id,
            sequence=(last or 0) + 1,
            user_id=user_id,
            message=message.strip(),
            is_staff=bool(is_staff),
            timestamp=utcnow(),
        )
        db.session.add(reply)
        ticket.updated_at = utcnow()
        db.session.commit()
        return reply

    @staticmethod
    def update_ticket(ticket_id: str, actor_id: str = None, status: str = None,
                      priority: str = None, assigned_to: str = None) -> SupportTicket:
        """Staff-side status, priority and assignment changes"""
        ticket = SupportService.get_ticket(ticket_id)
        current = TicketStatus(ticket.status)
        if current in TERMINAL_STATUSES and (priority or assigned_to):
            raise IllegalTransition(f"Ticket is {current.value}; priority and assignee are frozen")

        values = {}
        if priority:
            values["priority"] = parse_enum(TicketPriority, priority, "priority")
        if assigned_to:
            values["assigned_to"] = assigned_to

        target = parse_enum(TicketStatus, status, "status") if status else current
        if target != current:
            if target not in TICKET_TRANSITIONS[current]:
                raise IllegalTransition(
                    f"Cannot transition ticket from {current.value} to {target.value}"
                )
            values["status"] = target
            if target == TicketStatus.RESOLVED:
                values["resolved_at"] = utcnow()
            elif target == TicketStatus.CLOSED:
                values["closed_at"] = utcnow()

        if not values:
            return ticket

        try:
            if not SupportTicket.compare_and_set(ticket.id, current, values):
                raise ConcurrentUpdate("Ticket was updated by another request")
            if target != current:
                AuditService.log(
                    "TICKET_STATUS_CHANGED", "support_ticket", ticket.id,
                    f"Ticket {ticket.ticket_number} moved to {target.value}",
                    actor_id=actor_id,
                    changes={"status": (current, target)},
                )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        ticket = db.session.get(SupportTicket, ticket_id)
        if target != current:
            send_status_event("support_ticket", ticket.id, current, target, actor_id=actor_id)
        return ticket
