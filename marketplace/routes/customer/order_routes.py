from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.order_service import OrderService
from marketplace.utils.decorators import role_required
from marketplace.enums import UserRole
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response
from marketplace.schemas import OrderCreateSchema

order_bp = Blueprint("orders", __name__)


@order_bp.route("/", methods=["POST"])
@jwt_required()
@role_required(UserRole.CUSTOMER)
@validate_schema(OrderCreateSchema)
def create_order(current_user):
    """Place a new order"""
    data = request.validated_data
    order = OrderService.create_order(
        customer_id=current_user.id,
        items_data=data["items"],
        shipping_address=data.get("shipping_address"),
        payment_method=data["payment_method"],
        shipping_amount=data["shipping_amount"],
        tax=data["tax"],
        discount=data["discount"],
    )
    return (
        jsonify(
            {
                "message": "Order created successfully",
                "order": order.to_dict(include_items=True),
            }
        ),
        201,
    )


@order_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.CUSTOMER)
def get_orders(current_user):
    """Get customer orders"""
    status = request.args.get("status")
    page, per_page = validate_pagination()

    pagination = OrderService.get_orders(
        user_id=current_user.id,
        role=UserRole.CUSTOMER,
        status=status,
        page=page,
        per_page=per_page,
    )
    return paginated_response(pagination, "orders")


@order_bp.route("/<order_id>", methods=["GET"])
@jwt_required()
@role_required(UserRole.CUSTOMER)
def get_order(order_id, current_user):
    """Get order detail with tracking history"""
    order = OrderService.get_order_by_id(order_id, current_user.id, UserRole.CUSTOMER)
    return jsonify({"order": order.to_dict(include_items=True)}), 200
