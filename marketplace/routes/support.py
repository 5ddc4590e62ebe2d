from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.support_service import SupportService
from marketplace.schemas import TicketCreateSchema, TicketReplySchema
from marketplace.utils.decorators import login_required
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response

support_bp = Blueprint("support", __name__)


@support_bp.route("/tickets", methods=["POST"])
@jwt_required()
@login_required
@validate_schema(TicketCreateSchema)
def create_ticket(current_user):
    ticket = SupportService.create_ticket(user_id=current_user.id, **request.validated_data)
    return jsonify({"message": "Ticket created", "ticket": ticket.to_dict(include_replies=True)}), 201


@support_bp.route("/tickets", methods=["GET"])
@jwt_required()
@login_required
def get_tickets(current_user):
    """The caller's own tickets"""
    page, per_page = validate_pagination()
    pagination = SupportService.get_tickets(
        user_id=current_user.id,
        status=request.args.get("status"),
        priority=request.args.get("priority"),
        page=page,
        per_page=per_page,
    )
    return paginated_response(
        pagination, "tickets", counts=SupportService.status_counts(current_user.id)
    )


@support_bp.route("/tickets/<ticket_id>", methods=["GET"])
@jwt_required()
@login_required
def get_ticket(ticket_id, current_user):
    ticket = SupportService.get_ticket(ticket_id, current_user.id)
    return jsonify({"ticket": ticket.to_dict(include_replies=True)}), 200


@support_bp.route("/tickets/<ticket_id>/replies", methods=["POST"])
@jwt_required()
@login_required
@validate_schema(TicketReplySchema)
def reply_to_ticket(ticket_id, current_user):
    reply = SupportService.reply(
        ticket_id,
        current_user.id,
        request.validated_data["message"],
        owner_id=current_user.id,
    )
    return jsonify({"message": "Reply added", "reply": reply.to_dict()}), 201
