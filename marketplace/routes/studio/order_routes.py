from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.order_service import OrderService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response
from marketplace.schemas import OrderStatusUpdateSchema, TrackingInfoSchema
from marketplace.enums import UserRole

order_studio_bp = Blueprint("orders", __name__)


@order_studio_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.STUDIO)
def get_orders(current_user):
    """Orders containing at least one of the studio's items"""
    status = request.args.get("status")
    page, per_page = validate_pagination()

    pagination = OrderService.get_orders(
        user_id=current_user.id,
        role=UserRole.STUDIO,
        status=status,
        page=page,
        per_page=per_page,
    )
    return paginated_response(pagination, "orders")


@order_studio_bp.route("/<order_id>", methods=["GET"])
@jwt_required()
@role_required(UserRole.STUDIO)
def get_order(order_id, current_user):
    order = OrderService.get_order_by_id(order_id, current_user.id, UserRole.STUDIO)
    return jsonify({"order": order.to_dict(include_items=True)}), 200


@order_studio_bp.route("/<order_id>/status", methods=["PATCH"])
@jwt_required()
@role_required(UserRole.STUDIO)
@validate_schema(OrderStatusUpdateSchema)
def update_order_status(order_id, current_user):
    data = request.validated_data
    order = OrderService.update_order_status(
        order_id,
        data["status"],
        tracking_info=data.get("tracking_info"),
        actor_id=current_user.id,
        role=UserRole.STUDIO,
        message=data.get("message"),
    )
    return (
        jsonify(
            {
                "message": "Order status updated successfully",
                "order": order.to_dict(include_items=True),
            }
        ),
        200,
    )


@order_studio_bp.route("/<order_id>/tracking", methods=["PUT"])
@jwt_required()
@role_required(UserRole.STUDIO)
@validate_schema(TrackingInfoSchema)
def update_tracking(order_id, current_user):
    order = OrderService.update_tracking(
        order_id, request.validated_data, actor_id=current_user.id, role=UserRole.STUDIO
    )
    return jsonify({"message": "Tracking updated", "order": order.to_dict(include_items=True)}), 200
