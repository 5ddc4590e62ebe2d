import pytest
from marketplace.enums import TicketStatus, TicketPriority
from marketplace.exceptions import IllegalTransition, NotFound, ValidationError
from marketplace.services.support_service import SupportService
from marketplace.utils import helpers


@pytest.fixture
def ticket(customer_user):
    return SupportService.create_ticket(
        user_id=customer_user.id,
        subject="Payment failed",
        description="Card declined twice",
        category="payment",
        priority="high",
    )


class TestTicketWorkflow:
    """Ticket lifecycle"""

    def test_create_reply_keeps_status(self, ticket, admin_user):
        assert ticket.status == TicketStatus.OPEN
        assert ticket.ticket_number == "TKT-000001"

        SupportService.reply(ticket.id, admin_user.id, "Investigating", is_staff=True)

        ticket = SupportService.get_ticket(ticket.id)
        assert len(ticket.replies) == 1
        assert ticket.replies[0].is_staff is True
        assert ticket.replies[0].message == "Investigating"
        assert ticket.status == TicketStatus.OPEN

    def test_replies_keep_order(self, ticket, customer_user, admin_user):
        SupportService.reply(ticket.id, admin_user.id, "Which card?", is_staff=True)
        SupportService.reply(ticket.id, customer_user.id, "The Visa ending 4242", owner_id=customer_user.id)

        ticket = SupportService.get_ticket(ticket.id)
        assert [r.message for r in ticket.replies] == ["Which card?", "The Visa ending 4242"]
        assert [r.is_staff for r in ticket.replies] == [True, False]

    def test_blank_subject_rejected(self, customer_user):
        with pytest.raises(ValidationError):
            SupportService.create_ticket(customer_user.id, " ", "Something broke")

    def test_related_entity_needs_both_parts(self, customer_user):
        with pytest.raises(ValidationError):
            SupportService.create_ticket(customer_user.id, "Late", "Where is it", related_type="order")

    def test_status_path(self, ticket, admin_user):
        for status in ("in_progress", "waiting_customer", "in_progress", "resolved"):
            ticket = SupportService.update_ticket(ticket.id, admin_user.id, status=status)
            assert ticket.status == TicketStatus(status)
        assert ticket.resolved_at is not None

    @pytest.mark.parametrize("terminal", ["resolved", "closed"])
    def test_terminal_ticket_refuses_replies(self, ticket, admin_user, customer_user, terminal):
        SupportService.update_ticket(ticket.id, admin_user.id, status=terminal)

        with pytest.raises(IllegalTransition):
            SupportService.reply(ticket.id, customer_user.id, "Still broken", owner_id=customer_user.id)

    def test_no_reopening(self, ticket, admin_user):
        SupportService.update_ticket(ticket.id, admin_user.id, status="closed")
        with pytest.raises(IllegalTransition):
            SupportService.update_ticket(ticket.id, admin_user.id, status="open")

    def test_priority_and_assignment(self, ticket, admin_user):
        ticket = SupportService.update_ticket(
            ticket.id, admin_user.id, priority="urgent", assigned_to=admin_user.id
        )
        assert ticket.priority == TicketPriority.URGENT
        assert ticket.assigned_to == admin_user.id
        assert ticket.status == TicketStatus.OPEN

    @pytest.mark.parametrize("field", ["priority", "assigned_to"])
    @pytest.mark.parametrize("terminal", ["resolved", "closed"])
    def test_terminal_ticket_is_frozen(self, ticket, admin_user, terminal, field):
        SupportService.update_ticket(ticket.id, admin_user.id, status=terminal)
        change = {"priority": "urgent"} if field == "priority" else {"assigned_to": admin_user.id}

        with pytest.raises(IllegalTransition):
            SupportService.update_ticket(ticket.id, admin_user.id, **change)

        ticket = SupportService.get_ticket(ticket.id)
        assert ticket.priority == TicketPriority.HIGH
        assert ticket.assigned_to is None

    def test_ticket_number_taken_concurrently_is_retried(self, ticket, customer_user, monkeypatch):
        # Another writer already committed the number this one counted
        stale = iter(["TKT-000001"])
        real = helpers.generate_sequence_number
        monkeypatch.setattr(
            helpers, "generate_sequence_number",
            lambda prefix, model: next(stale, None) or real(prefix, model),
        )

        second = SupportService.create_ticket(customer_user.id, "Login", "Cannot sign in")
        assert second.ticket_number == "TKT-000002"
        assert SupportService.status_counts()["total"] == 2

    def test_owner_scoping(self, ticket, other_customer):
        with pytest.raises(NotFound):
            SupportService.get_ticket(ticket.id, other_customer.id)

    def test_status_counts(self, ticket, customer_user, admin_user):
        SupportService.create_ticket(customer_user.id, "Login", "Cannot sign in", category="account")
        SupportService.update_ticket(ticket.id, admin_user.id, status="resolved")

        counts = SupportService.status_counts(customer_user.id)
        assert counts["open"] == 1
        assert counts["resolved"] == 1
        assert counts["total"] == 2


class TestSupportRoutes:
    """Support endpoints"""

    def test_end_to_end_ticket(self, client, customer_headers, admin_headers):
        response = client.post(
            "/api/v1/support/tickets",
            json={
                "subject": "Payment failed",
                "description": "Card declined twice",
                "category": "payment",
                "priority": "high",
            },
            headers=customer_headers,
        )
        assert response.status_code == 201
        ticket = response.json["ticket"]
        assert ticket["status"] == "open"
        ticket_id = ticket["id"]

        response = client.post(
            f"/api/v1/admin/support/tickets/{ticket_id}/replies",
            json={"message": "Investigating"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json["reply"]["is_staff"] is True

        response = client.get(f"/api/v1/support/tickets/{ticket_id}", headers=customer_headers)
        ticket = response.json["ticket"]
        assert ticket["reply_count"] == 1
        assert ticket["replies"][0]["message"] == "Investigating"
        assert ticket["status"] == "open"

    def test_customer_listing_has_counts(self, client, customer_headers, ticket):
        response = client.get("/api/v1/support/tickets", headers=customer_headers)

        assert response.status_code == 200
        assert response.json["total"] == 1
        assert response.json["counts"]["open"] == 1

    def test_studio_can_open_ticket(self, client, studio_headers):
        response = client.post(
            "/api/v1/support/tickets",
            json={"subject": "Payout delayed", "description": "No payout this week", "category": "payment"},
            headers=studio_headers,
        )
        assert response.status_code == 201
        assert response.json["ticket"]["priority"] == "medium"

    def test_admin_status_update_and_closed_reply(self, client, admin_headers, customer_headers, ticket):
        response = client.patch(
            f"/api/v1/admin/support/tickets/{ticket.id}",
            json={"status": "closed"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json["ticket"]["status"] == "closed"

        response = client.post(
            f"/api/v1/support/tickets/{ticket.id}/replies",
            json={"message": "Hello?"},
            headers=customer_headers,
        )
        assert response.status_code == 400
        assert response.json["code"] == "illegal_transition"

    def test_subject_length_limit(self, client, customer_headers):
        response = client.post(
            "/api/v1/support/tickets",
            json={"subject": "x" * 201, "description": "Too long"},
            headers=customer_headers,
        )
        assert response.status_code == 400
        assert "subject" in response.json["messages"]
