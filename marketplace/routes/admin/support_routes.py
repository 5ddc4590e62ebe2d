from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.support_service import SupportService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response
from marketplace.schemas import TicketUpdateSchema, TicketReplySchema
from marketplace.enums import UserRole

support_admin_bp = Blueprint("support", __name__)


@support_admin_bp.route("/tickets", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_tickets(current_user):
    """All tickets, with per-status counts for the queue header"""
    page, per_page = validate_pagination()
    pagination = SupportService.get_tickets(
        status=request.args.get("status"),
        priority=request.args.get("priority"),
        page=page,
        per_page=per_page,
    )
    return paginated_response(pagination, "tickets", counts=SupportService.status_counts())


@support_admin_bp.route("/tickets/<ticket_id>", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_ticket(ticket_id, current_user):
    ticket = SupportService.get_ticket(ticket_id)
    return jsonify({"ticket": ticket.to_dict(include_replies=True)}), 200


@support_admin_bp.route("/tickets/<ticket_id>", methods=["PATCH"])
@jwt_required()
@role_required(UserRole.ADMIN)
@validate_schema(TicketUpdateSchema)
def update_ticket(ticket_id, current_user):
    ticket = SupportService.update_ticket(ticket_id, actor_id=current_user.id, **request.validated_data)
    return jsonify({"message": "Ticket updated", "ticket": ticket.to_dict(include_replies=True)}), 200


@support_admin_bp.route("/tickets/<ticket_id>/replies", methods=["POST"])
@jwt_required()
@role_required(UserRole.ADMIN)
@validate_schema(TicketReplySchema)
def reply_to_ticket(ticket_id, current_user):
    reply = SupportService.reply(
        ticket_id, current_user.id, request.validated_data["message"], is_staff=True
    )
    return jsonify({"message": "Reply added", "reply": reply.to_dict()}), 201
