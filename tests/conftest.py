import pytest
from decimal import Decimal
from marketplace import create_app, db
from marketplace.config import TestingConfig
from marketplace.models.user import User
from marketplace.models.shipping import ShippingZone, ShippingRate
from marketplace.enums import UserRole, OrderStatus, ShippingRateType
from marketplace.services.order_service import OrderService, OrderStatusMachine


@pytest.fixture(scope="function")
def app():
    """Create application for testing"""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Test client"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Test CLI runner"""
    return app.test_cli_runner()


def _make_user(username, role, **kwargs):
    user = User(
        email=f"{username}@test.com",
        username=username,
        role=role,
        is_active=True,
        **kwargs,
    )
    user.set_password("password123")
    db.session.add(user)
    db.session.commit()
    return user


# User fixtures
@pytest.fixture
def customer_user(app):
    """Create a customer user"""
    return _make_user("customer", UserRole.CUSTOMER, full_name="Test Customer", phone="0901234567")


@pytest.fixture
def other_customer(app):
    return _make_user("othercustomer", UserRole.CUSTOMER)


@pytest.fixture
def studio_user(app):
    """Create a studio (seller) user"""
    return _make_user("studio", UserRole.STUDIO, full_name="Clay Studio")


@pytest.fixture
def other_studio(app):
    return _make_user("otherstudio", UserRole.STUDIO)


@pytest.fixture
def admin_user(app):
    """Create an admin user"""
    return _make_user("admin", UserRole.ADMIN, full_name="Test Admin")


# Auth token fixtures
def _login(client, username):
    response = client.post(
        "/api/v1/auth/login", json={"username": username, "password": "password123"}
    )
    assert response.status_code == 200, f"Login failed: {response.json}"
    return response.json["access_token"]


@pytest.fixture
def customer_token(client, customer_user):
    """Get customer authentication token"""
    return _login(client, "customer")


@pytest.fixture
def studio_token(client, studio_user):
    """Get studio authentication token"""
    return _login(client, "studio")


@pytest.fixture
def admin_token(client, admin_user):
    """Get admin authentication token"""
    return _login(client, "admin")


@pytest.fixture
def customer_headers(customer_token):
    """Customer authentication headers"""
    return {"Authorization": f"Bearer {customer_token}"}


@pytest.fixture
def studio_headers(studio_token):
    """Studio authentication headers"""
    return {"Authorization": f"Bearer {studio_token}"}


@pytest.fixture
def admin_headers(admin_token):
    """Admin authentication headers"""
    return {"Authorization": f"Bearer {admin_token}"}


# Data fixtures
SHIPPING_ADDRESS = {
    "name": "Test Customer",
    "line1": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "country": "IN",
    "postal_code": "560001",
}


@pytest.fixture
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture
def order_items(studio_user):
    """A physical product and a course from the same studio"""
    return [
        {
            "item_type": "product",
            "item_id": "prod-vase-01",
            "seller_id": studio_user.id,
            "name": "Hand-thrown Vase",
            "price": Decimal("1200.00"),
            "quantity": 2,
        },
        {
            "item_type": "course",
            "item_id": "course-wheel-101",
            "seller_id": studio_user.id,
            "name": "Wheel Throwing 101",
            "price": Decimal("2500.00"),
            "quantity": 1,
        },
    ]


@pytest.fixture
def pending_order(app, customer_user, order_items, shipping_address):
    """Freshly placed order"""
    return OrderService.create_order(
        customer_id=customer_user.id,
        items_data=order_items,
        shipping_address=shipping_address,
        shipping_amount=Decimal("99.00"),
    )


def advance_order(order, *statuses, actor_id=None):
    """Walk an order through the given statuses, shipping with default tracking"""
    for status in statuses:
        tracking = None
        if status == OrderStatus.SHIPPED:
            tracking = {"carrier": "BlueDart", "tracking_number": "BD123456789IN"}
        order = OrderStatusMachine.transition(order, status, tracking_info=tracking, actor_id=actor_id)
    return order


@pytest.fixture
def delivered_order(pending_order, admin_user):
    return advance_order(
        pending_order,
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        actor_id=admin_user.id,
    )


@pytest.fixture
def product_item(delivered_order):
    return next(item for item in delivered_order.items if item.item_type.value == "product")


def make_zone(name, countries=(), states=(), rates=(), is_default=False, is_active=True):
    zone = ShippingZone(
        name=name,
        countries=list(countries),
        states=list(states),
        is_default=is_default,
        is_active=is_active,
    )
    zone.rates = [
        ShippingRate(
            position=position,
            name=rate.get("name", f"{name} rate {position}"),
            type=rate.get("type", ShippingRateType.FLAT),
            amount=Decimal(str(rate.get("amount", "0"))),
            min_weight=rate.get("min_weight"),
            max_weight=rate.get("max_weight"),
            min_order_value=rate.get("min_order_value"),
            max_order_value=rate.get("max_order_value"),
            min_days=rate.get("min_days", 3),
            max_days=rate.get("max_days", 7),
        )
        for position, rate in enumerate(rates)
    ]
    return zone


@pytest.fixture
def shipping_zones(app):
    """US zone with a flat $5 rate, and a worldwide default zone with a flat $10 rate"""
    us = make_zone("United States", countries=["US"], rates=[{"name": "Standard", "amount": "5"}])
    world = make_zone(
        "Rest of World", rates=[{"name": "International", "amount": "10"}], is_default=True
    )
    db.session.add_all([us, world])
    db.session.commit()
    return {"us": us, "world": world}


@pytest.fixture
def zone_factory():
    """Build unsaved zones; the resolver needs no database"""
    return make_zone


@pytest.fixture
def advance():
    return advance_order
