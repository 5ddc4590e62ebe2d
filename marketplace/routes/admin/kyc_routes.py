from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.kyc_service import KYCService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response
from marketplace.schemas import KYCDecisionSchema
from marketplace.enums import UserRole

kyc_admin_bp = Blueprint("kyc", __name__)


@kyc_admin_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_kyc_records(current_user):
    page, per_page = validate_pagination()
    pagination = KYCService.get_records(
        status=request.args.get("status"), page=page, per_page=per_page
    )
    return paginated_response(pagination, "records")


@kyc_admin_bp.route("/<user_id>/decision", methods=["POST"])
@jwt_required()
@role_required(UserRole.ADMIN)
@validate_schema(KYCDecisionSchema)
def decide_kyc(user_id, current_user):
    data = request.validated_data
    record = KYCService.decide(
        user_id, data["action"], reason=data.get("reason"), admin_id=current_user.id
    )
    return jsonify({"message": f"KYC {record.status.value}", "kyc": record.to_dict()}), 200
