from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.order_service import OrderService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response
from marketplace.schemas import OrderUpdateSchema
from marketplace.enums import UserRole

order_admin_bp = Blueprint("orders", __name__)


@order_admin_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_orders(current_user):
    """Get all orders"""
    status = request.args.get("status")
    page, per_page = validate_pagination()

    pagination = OrderService.get_orders(status=status, page=page, per_page=per_page)
    return paginated_response(pagination, "orders")


@order_admin_bp.route("/<order_id>", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_order(order_id, current_user):
    """Get order detail"""
    order = OrderService.get_order_by_id(order_id)
    return jsonify({"order": order.to_dict(include_items=True)}), 200


@order_admin_bp.route("/<order_id>", methods=["PATCH"])
@jwt_required()
@role_required(UserRole.ADMIN)
@validate_schema(OrderUpdateSchema)
def update_order(order_id, current_user):
    """Apply a status transition, or replace tracking when no status is given"""
    data = request.validated_data
    if data.get("status"):
        order = OrderService.update_order_status(
            order_id,
            data["status"],
            tracking_info=data.get("tracking_info"),
            actor_id=current_user.id,
            message=data.get("message"),
        )
    elif data.get("tracking_info"):
        order = OrderService.update_tracking(order_id, data["tracking_info"], actor_id=current_user.id)
    else:
        return jsonify({"error": "Nothing to update"}), 400

    return (
        jsonify({"message": "Order updated successfully", "order": order.to_dict(include_items=True)}),
        200,
    )
