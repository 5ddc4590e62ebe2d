import pytest
from flask import jsonify
from marketplace.extensions import db
from marketplace.models.ticket import SupportTicket
from marketplace.utils.decorators import role_required, login_required
from marketplace.utils.validators import validate_schema, validate_pagination
from marketplace.utils.helpers import (
    generate_order_number,
    generate_sequence_number,
    commit_with_sequence,
    allowed_file,
    is_blank,
    parse_enum,
)
from marketplace.enums import UserRole, OrderStatus
from marketplace.exceptions import ValidationError
from marshmallow import Schema, fields
from sqlalchemy.exc import IntegrityError


class TestDecorators:
    """Test decorator utilities"""

    def test_role_required_success(self, app, customer_user, customer_token):
        """Test role_required decorator with correct role"""
        with app.test_request_context(
            headers={"Authorization": f"Bearer {customer_token}"}
        ):
            @role_required(UserRole.CUSTOMER)
            def test_route(current_user):
                return jsonify({"success": True})

            response = test_route()
            assert response.status_code == 200

    def test_role_required_wrong_role(self, app, customer_user, customer_token):
        """Test role_required decorator with wrong role"""
        with app.test_request_context(
            headers={"Authorization": f"Bearer {customer_token}"}
        ):
            @role_required(UserRole.ADMIN)
            def test_route(current_user):
                return jsonify({"success": True})

            response, status_code = test_route()
            assert status_code == 403

    def test_login_required_passes_user(self, app, studio_user, studio_token):
        with app.test_request_context(
            headers={"Authorization": f"Bearer {studio_token}"}
        ):
            @login_required
            def test_route(current_user):
                return jsonify({"username": current_user.username})

            response = test_route()
            assert response.json["username"] == "studio"


class TestValidators:
    """Test validator utilities"""

    def test_validate_pagination_default(self, app):
        """Test pagination with default values"""
        with app.test_request_context():
            page, per_page = validate_pagination()
            assert page == 1
            assert per_page == 20

    def test_validate_pagination_custom(self, app):
        """Test pagination with custom values"""
        with app.test_request_context("/?page=2&per_page=10"):
            page, per_page = validate_pagination()
            assert page == 2
            assert per_page == 10

    def test_validate_pagination_invalid_page(self, app):
        """Test pagination with invalid page"""
        with app.test_request_context("/?page=0&per_page=10"):
            page, per_page = validate_pagination()
            assert page == 1  # Should default to 1

    def test_validate_pagination_invalid_per_page(self, app):
        """Test pagination with invalid per_page"""
        with app.test_request_context("/?page=1&per_page=200"):
            page, per_page = validate_pagination()
            assert per_page == 20  # Should default to 20

    def test_validate_schema_success(self, app):
        """Test schema validation success"""
        class TestSchema(Schema):
            name = fields.Str(required=True)

        @validate_schema(TestSchema)
        def test_route():
            return jsonify({"success": True})

        with app.test_request_context(
            "/", method="POST", json={"name": "Test"}
        ):
            response = test_route()
            assert response.status_code == 200

    def test_validate_schema_failure(self, app):
        """Test schema validation failure"""
        class TestSchema(Schema):
            name = fields.Str(required=True)

        @validate_schema(TestSchema)
        def test_route():
            return jsonify({"success": True})

        with app.test_request_context("/", method="POST", json={}):
            response, status_code = test_route()
            assert status_code == 400
            assert "name" in response.json["messages"]


class TestHelpers:
    """Test helper utilities"""

    def test_generate_order_number(self):
        """Test order number generation"""
        order_num = generate_order_number()
        assert order_num.startswith("ORD")
        assert len(order_num) == 21

    def test_generate_sequence_number(self, app, customer_user):
        assert generate_sequence_number("TKT", SupportTicket) == "TKT-000001"

        db.session.add(
            SupportTicket(
                ticket_number="TKT-000001", user_id=customer_user.id,
                subject="Hi", description="Hello",
            )
        )
        db.session.commit()
        assert generate_sequence_number("TKT", SupportTicket) == "TKT-000002"

    def test_commit_with_sequence_only_retries_number_clashes(self, app):
        # Missing user_id violates NOT NULL, not the ticket number
        ticket = SupportTicket(subject="Hi", description="Hello")
        with pytest.raises(IntegrityError):
            commit_with_sequence(ticket, "ticket_number", "TKT", lambda: db.session.add(ticket))

        assert SupportTicket.query.count() == 0

    def test_allowed_file(self):
        """Test file extension check"""
        assert allowed_file("test.jpg", {"jpg", "png"}) is True
        assert allowed_file("test.JPG", {"jpg", "png"}) is True
        assert allowed_file("test.pdf", {"jpg", "png"}) is False
        assert allowed_file("test", {"jpg", "png"}) is False

    @pytest.mark.parametrize("value", [None, "", "   ", "\n"])
    def test_is_blank(self, value):
        assert is_blank(value)

    def test_parse_enum(self):
        assert parse_enum(OrderStatus, "shipped", "status") == OrderStatus.SHIPPED
        assert parse_enum(OrderStatus, OrderStatus.SHIPPED, "status") == OrderStatus.SHIPPED

        with pytest.raises(ValidationError, match="Invalid status 'lost'"):
            parse_enum(OrderStatus, "lost", "status")
