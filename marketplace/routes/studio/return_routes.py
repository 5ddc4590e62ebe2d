from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.return_service import ReturnService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response
from marketplace.schemas import StudioFeedbackSchema
from marketplace.enums import UserRole

return_studio_bp = Blueprint("returns", __name__)


@return_studio_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.STUDIO)
def get_returns(current_user):
    """Return requests raised against the studio's items"""
    page, per_page = validate_pagination()
    pagination = ReturnService.get_requests(
        seller_id=current_user.id,
        status=request.args.get("status"),
        page=page,
        per_page=per_page,
    )
    return paginated_response(pagination, "return_requests")


@return_studio_bp.route("/<request_id>/feedback", methods=["POST"])
@jwt_required()
@role_required(UserRole.STUDIO)
@validate_schema(StudioFeedbackSchema)
def add_feedback(request_id, current_user):
    feedback = ReturnService.add_feedback(
        request_id, current_user.id, request.validated_data["message"]
    )
    return jsonify({"message": "Feedback submitted", "feedback": feedback.to_dict()}), 201
