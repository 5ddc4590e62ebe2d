import pytest
from marketplace.extensions import db
from marketplace.models.user import User
from marketplace.enums import KYCStatus
from marketplace.exceptions import AlreadyDecided, ReasonRequired, NotFound, ValidationError
from marketplace.services.kyc_service import KYCService

DOCUMENTS = [
    {"type": "id_proof", "url": "https://cdn.example/kyc/pan.pdf"},
    {"type": "address_proof", "url": "https://cdn.example/kyc/utility.pdf"},
]


@pytest.fixture
def kyc_record(studio_user):
    return KYCService.submit(studio_user.id, DOCUMENTS)


class TestKYCWorkflow:
    """Verification decisions"""

    def test_status_before_submission(self, studio_user):
        assert KYCService.status(studio_user.id)["status"] == "not_submitted"

    def test_submit_creates_pending_record(self, kyc_record, studio_user):
        assert kyc_record.status == KYCStatus.PENDING
        assert [d.type for d in kyc_record.documents] == ["id_proof", "address_proof"]
        assert KYCService.status(studio_user.id)["status"] == "pending"

    def test_submit_needs_documents(self, studio_user):
        with pytest.raises(ValidationError):
            KYCService.submit(studio_user.id, [])

    def test_second_submission_refused(self, kyc_record, studio_user):
        with pytest.raises(AlreadyDecided):
            KYCService.submit(studio_user.id, DOCUMENTS)

    def test_customers_do_not_submit_kyc(self, customer_user):
        with pytest.raises(NotFound):
            KYCService.submit(customer_user.id, DOCUMENTS)

    def test_approve(self, kyc_record, studio_user, admin_user):
        record = KYCService.decide(studio_user.id, "approve", admin_id=admin_user.id)

        assert record.status == KYCStatus.APPROVED
        assert record.verified_at is not None
        assert record.decided_by == admin_user.id
        assert all(doc.verified for doc in record.documents)
        assert db.session.get(User, studio_user.id).is_verified is True

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_requires_reason(self, kyc_record, studio_user, reason):
        with pytest.raises(ReasonRequired):
            KYCService.decide(studio_user.id, "reject", reason=reason)

        assert KYCService.get_record(studio_user.id).status == KYCStatus.PENDING

    def test_reject_with_reason(self, kyc_record, studio_user, admin_user):
        record = KYCService.decide(studio_user.id, "reject", reason="Document is blurry", admin_id=admin_user.id)

        assert record.status == KYCStatus.REJECTED
        assert record.rejection_reason == "Document is blurry"
        assert record.verified_at is None
        assert db.session.get(User, studio_user.id).is_verified is False

    @pytest.mark.parametrize("action", ["approve", "reject"])
    def test_decided_record_is_final(self, kyc_record, studio_user, action):
        KYCService.decide(studio_user.id, "approve")

        with pytest.raises(AlreadyDecided):
            KYCService.decide(studio_user.id, action, reason="Second look")

    def test_decide_without_record(self, studio_user):
        with pytest.raises(NotFound):
            KYCService.decide(studio_user.id, "approve")


class TestKYCRoutes:
    """KYC endpoints"""

    def test_submit_and_decide(self, client, studio_headers, admin_headers, studio_user):
        response = client.get("/api/v1/studio/kyc/", headers=studio_headers)
        assert response.json["kyc"]["status"] == "not_submitted"

        response = client.post("/api/v1/studio/kyc/", json={"documents": DOCUMENTS}, headers=studio_headers)
        assert response.status_code == 201
        assert response.json["kyc"]["status"] == "pending"

        response = client.get("/api/v1/admin/kyc/?status=pending", headers=admin_headers)
        assert response.json["total"] == 1

        response = client.post(
            f"/api/v1/admin/kyc/{studio_user.id}/decision",
            json={"action": "reject", "reason": ""},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json["code"] == "reason_required"

        response = client.post(
            f"/api/v1/admin/kyc/{studio_user.id}/decision",
            json={"action": "approve"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json["kyc"]["status"] == "approved"

        response = client.post(
            f"/api/v1/admin/kyc/{studio_user.id}/decision",
            json={"action": "approve"},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json["code"] == "already_decided"
