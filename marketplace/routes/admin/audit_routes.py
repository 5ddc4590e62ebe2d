from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from marketplace.services.audit_service import AuditService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_pagination, paginated_response
from marketplace.enums import UserRole

audit_admin_bp = Blueprint("audit", __name__)


@audit_admin_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_audit_logs(current_user):
    page, per_page = validate_pagination()
    pagination = AuditService.get_logs(
        resource=request.args.get("resource"),
        resource_id=request.args.get("resource_id"),
        page=page,
        per_page=per_page,
    )
    return paginated_response(pagination, "logs")
