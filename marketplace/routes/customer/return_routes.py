from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.return_service import ReturnService
from marketplace.utils.decorators import role_required
from marketplace.enums import UserRole
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response
from marketplace.schemas import ReturnCreateSchema

return_bp = Blueprint("returns", __name__)


@return_bp.route("/", methods=["POST"])
@jwt_required()
@role_required(UserRole.CUSTOMER)
@validate_schema(ReturnCreateSchema)
def submit_return(current_user):
    """Request a return or refund for a delivered item"""
    data = request.validated_data
    return_request = ReturnService.submit(
        customer_id=current_user.id,
        order_id=data["order_id"],
        item_id=data["item_id"],
        type=data["type"],
        reason=data["reason"],
        description=data["description"],
        evidence=data["evidence"],
    )
    return (
        jsonify(
            {
                "message": "Return request submitted",
                "return_request": return_request.to_dict(include_details=True),
            }
        ),
        201,
    )


@return_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.CUSTOMER)
def get_returns(current_user):
    page, per_page = validate_pagination()
    pagination = ReturnService.get_requests(
        customer_id=current_user.id,
        status=request.args.get("status"),
        page=page,
        per_page=per_page,
    )
    return paginated_response(pagination, "return_requests")


@return_bp.route("/eligible-orders", methods=["GET"])
@jwt_required()
@role_required(UserRole.CUSTOMER)
def get_eligible_orders(current_user):
    """Delivered orders that still have items open for a return"""
    orders = ReturnService.eligible_orders(current_user.id)
    return jsonify({"orders": orders}), 200


@return_bp.route("/<request_id>", methods=["GET"])
@jwt_required()
@role_required(UserRole.CUSTOMER)
def get_return(request_id, current_user):
    return_request = ReturnService.get_request(request_id, customer_id=current_user.id)
    return jsonify({"return_request": return_request.to_dict(include_details=True)}), 200
