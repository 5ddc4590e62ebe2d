from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.return_service import ReturnService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response
from marketplace.schemas import ReturnDecisionSchema
from marketplace.enums import UserRole

return_admin_bp = Blueprint("returns", __name__)


@return_admin_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_returns(current_user):
    page, per_page = validate_pagination()
    pagination = ReturnService.get_requests(
        status=request.args.get("status"), page=page, per_page=per_page
    )
    return paginated_response(pagination, "return_requests")


@return_admin_bp.route("/<request_id>", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_return(request_id, current_user):
    return_request = ReturnService.get_request(request_id)
    return jsonify({"return_request": return_request.to_dict(include_details=True)}), 200


@return_admin_bp.route("/<request_id>", methods=["PATCH"])
@jwt_required()
@role_required(UserRole.ADMIN)
@validate_schema(ReturnDecisionSchema)
def decide_return(request_id, current_user):
    """Approve or reject a pending request"""
    data = request.validated_data
    return_request = ReturnService.decide(
        request_id,
        data["decision"],
        admin_id=current_user.id,
        notes=data.get("notes"),
        refund_amount=data.get("refund_amount"),
    )
    return (
        jsonify(
            {
                "message": f"Return request {return_request.status.value}",
                "return_request": return_request.to_dict(include_details=True),
            }
        ),
        200,
    )
