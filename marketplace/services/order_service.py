import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from marketplace.extensions import db
from marketplace.models.order import Order, OrderItem, OrderTrackingEvent
from marketplace.models.base import utcnow
from marketplace.enums import OrderStatus, PaymentStatus, PaymentMethod, ItemType, UserRole
from marketplace.exceptions import (
    ValidationError,
    NotFound,
    IllegalTransition,
    MissingTrackingInfo,
    ConcurrentUpdate,
)
from marketplace.services.audit_service import AuditService
from marketplace.utils.helpers import generate_order_number, is_blank, parse_enum
from marketplace.utils.kafka_utils import send_status_event

logger = logging.getLogger(__name__)


class OrderStatusMachine:
    """Forward-only order lifecycle; cancelled/refunded reachable from any open state"""

    TRANSITIONS = {
        OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
        OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
        OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
        OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
        OrderStatus.DELIVERED: set(),
        OrderStatus.CANCELLED: set(),
        OrderStatus.REFUNDED: set(),
    }

    MESSAGES = {
        OrderStatus.PENDING: "Order placed",
        OrderStatus.CONFIRMED: "Order has been confirmed",
        OrderStatus.PROCESSING: "Order is being prepared",
        OrderStatus.SHIPPED: "Order has been shipped",
        OrderStatus.DELIVERED: "Order has been delivered",
        OrderStatus.CANCELLED: "Order has been cancelled",
        OrderStatus.REFUNDED: "Order has been refunded",
    }

    TIMESTAMP_FIELDS = {
        OrderStatus.SHIPPED: "shipped_at",
        OrderStatus.DELIVERED: "delivered_at",
        OrderStatus.CANCELLED: "cancelled_at",
        OrderStatus.REFUNDED: "refunded_at",
    }

    TRACKING_EDITABLE = {OrderStatus.PROCESSING, OrderStatus.SHIPPED}

    @classmethod
    def is_terminal(cls, status) -> bool:
        return not cls.TRANSITIONS[OrderStatus(status)]

    @classmethod
    def can_transition(cls, current, target) -> bool:
        return OrderStatus(target) in cls.TRANSITIONS[OrderStatus(current)]

    @staticmethod
    def _tracking_values(tracking_info: dict) -> dict:
        tracking_info = tracking_info or {}
        if is_blank(tracking_info.get("carrier")) or is_blank(tracking_info.get("tracking_number")):
            raise MissingTrackingInfo()

        estimated = tracking_info.get("estimated_delivery") or None
        if isinstance(estimated, str):
            try:
                estimated = datetime.fromisoformat(estimated)
            except ValueError:
                raise ValidationError(f"Invalid estimated delivery date '{estimated}'")
        return {
            "carrier": tracking_info["carrier"].strip(),
            "tracking_number": tracking_info["tracking_number"].strip(),
            "tracking_url": tracking_info.get("tracking_url") or None,
            "estimated_delivery": estimated,
        }

    @staticmethod
    def _append_history(order_id: str, status: OrderStatus, message: str, actor_id: str = None):
        last = (
            db.session.query(func.max(OrderTrackingEvent.sequence))
            .filter(OrderTrackingEvent.order_id == order_id)
            .scalar()
        )
        event = OrderTrackingEvent(
            order_id=order_id,
            sequence=(last or 0) + 1,
            status=status,
            timestamp=utcnow(),
            message=message,
            updated_by=actor_id,
        )
        db.session.add(event)
        return event

    @classmethod
    def transition(cls, order: Order, new_status, tracking_info: dict = None,
                   actor_id: str = None, message: str = None) -> Order:
        """Move ``order`` to ``new_status``.

        Re-applying the current status is a no-op. Shipping an order without
        tracking requires ``tracking_info`` with carrier and tracking number;
        it is written by the same conditional UPDATE as the status.
        """
        new_status = parse_enum(OrderStatus, new_status, "order status")
        current = OrderStatus(order.status)

        if current == new_status:
            return order

        if not cls.can_transition(current, new_status):
            raise IllegalTransition(f"Cannot transition from {current.value} to {new_status.value}")

        values = {"status": new_status}
        if tracking_info and new_status != OrderStatus.SHIPPED:
            raise ValidationError("Tracking info can only be attached when shipping")
        if new_status == OrderStatus.SHIPPED and (tracking_info or not order.has_tracking):
            values.update(cls._tracking_values(tracking_info))

        timestamp_field = cls.TIMESTAMP_FIELDS.get(new_status)
        if timestamp_field:
            values[timestamp_field] = utcnow()
        if new_status == OrderStatus.REFUNDED and order.payment_status == PaymentStatus.PAID:
            values["payment_status"] = PaymentStatus.REFUNDED

        order_id = order.id
        try:
            if not Order.compare_and_set(order_id, current, values):
                db.session.rollback()
                fresh = db.session.get(Order, order_id)
                if fresh is not None and fresh.status == new_status:
                    logger.info(f"Order {order_id} already {new_status.value}, nothing to do")
                    return fresh
                raise ConcurrentUpdate(f"Order {order_id} was updated by another request")

            cls._append_history(order_id, new_status, message or cls.MESSAGES[new_status], actor_id)
            AuditService.log(
                "ORDER_STATUS_CHANGED", "order", order_id,
                f"Order status changed from {current.value} to {new_status.value}",
                actor_id=actor_id,
                changes={"status": (current, new_status)},
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        order = db.session.get(Order, order_id)
        logger.info(f"Order {order.order_number} {current.value} -> {new_status.value}")
        send_status_event("order", order_id, current, new_status, actor_id=actor_id)
        return order

    @classmethod
    def update_tracking(cls, order: Order, tracking_info: dict, actor_id: str = None) -> Order:
        """Replace tracking details of an order that is being prepared or in transit"""
        current = OrderStatus(order.status)
        if current not in cls.TRACKING_EDITABLE:
            raise IllegalTransition(f"Tracking cannot be changed on a {current.value} order")

        values = cls._tracking_values(tracking_info)
        order_id = order.id
        try:
            if not Order.compare_and_set(order_id, current, values):
                raise ConcurrentUpdate(f"Order {order_id} was updated by another request")
            cls._append_history(
                order_id,
                current,
                f"Tracking updated: {values['carrier']} {values['tracking_number']}",
                actor_id,
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return db.session.get(Order, order_id)


class OrderService:
    @staticmethod
    def create_order(customer_id: str, items_data: list, shipping_address: dict = None,
                     payment_method=PaymentMethod.RAZORPAY, shipping_amount=Decimal("0"),
                     tax=Decimal("0"), discount=Decimal("0")) -> Order:
        if not items_data:
            raise ValidationError("Order must have at least one item")

        items = []
        for position, item in enumerate(items_data):
            if item["quantity"] < 1:
                raise ValidationError(f"Invalid quantity for {item['name']}")
            items.append(
                OrderItem(
                    position=position,
                    item_type=parse_enum(ItemType, item["item_type"], "item type"),
                    item_id=item["item_id"],
                    seller_id=item.get("seller_id"),
                    name=item["name"],
                    price=Decimal(str(item["price"])),
                    quantity=item["quantity"],
                    image=item.get("image"),
                )
            )

        if any(i.item_type == ItemType.PRODUCT for i in items) and not shipping_address:
            raise ValidationError("Shipping address is required for physical products")

        order = Order(
            order_number=generate_order_number(),
            customer_id=customer_id,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_method=parse_enum(PaymentMethod, payment_method, "payment method"),
            shipping_address=shipping_address or None,
            shipping_amount=Decimal(str(shipping_amount)),
            tax=Decimal(str(tax)),
            discount=Decimal(str(discount)),
        )
        order.items = items
        order.calculate_totals()
        if order.total < 0:
            raise ValidationError("Discount exceeds order value")

        try:
            db.session.add(order)
            db.session.flush()
            OrderStatusMachine._append_history(
                order.id, OrderStatus.PENDING, OrderStatusMachine.MESSAGES[OrderStatus.PENDING],
                customer_id,
            )
            AuditService.log(
                "ORDER_PLACED", "order", order.id, f"Order {order.order_number} placed",
                actor_id=customer_id,
            )
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to create order: {e}", exc_info=True)
            raise

        send_status_event("order", order.id, None, OrderStatus.PENDING, actor_id=customer_id)
        return order

    @staticmethod
    def get_order_by_id(order_id: str, user_id: str = None, role=None) -> Order:
        order = db.session.get(Order, order_id)
        if not order:
            raise NotFound("Order not found")

        # Access control
        if role == UserRole.CUSTOMER and order.customer_id != user_id:
            raise NotFound("Order not found")
        elif role == UserRole.STUDIO and not any(i.seller_id == user_id for i in order.items):
            raise NotFound("Order not found")

        return order

    @staticmethod
    def get_orders(user_id: str = None, role=None, status: str = None, page: int = 1, per_page: int = 20):
        query = Order.query

        if role == UserRole.CUSTOMER:
            query = query.filter_by(customer_id=user_id)
        elif role == UserRole.STUDIO:
            query = query.filter(Order.items.any(OrderItem.seller_id == user_id))

        if status:
            query = query.filter(Order.status == parse_enum(OrderStatus, status, "status"))

        return query.order_by(Order.created_at.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )

    @staticmethod
    def update_order_status(order_id: str, new_status: str, tracking_info: dict = None,
                            actor_id: str = None, role=None, message: str = None) -> Order:
        """Load the order visible to the caller and apply the transition"""
        order = OrderService.get_order_by_id(order_id, actor_id, role)
        return OrderStatusMachine.transition(
            order, new_status, tracking_info=tracking_info, actor_id=actor_id, message=message
        )

    @staticmethod
    def update_tracking(order_id: str, tracking_info: dict, actor_id: str = None, role=None) -> Order:
        order = OrderService.get_order_by_id(order_id, actor_id, role)
        return OrderStatusMachine.update_tracking(order, tracking_info, actor_id=actor_id)

