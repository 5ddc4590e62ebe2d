from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.kyc_service import KYCService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema
from marketplace.schemas import KYCSubmitSchema
from marketplace.enums import UserRole

kyc_studio_bp = Blueprint("kyc", __name__)


@kyc_studio_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.STUDIO)
def get_kyc_status(current_user):
    return jsonify({"kyc": KYCService.status(current_user.id)}), 200


@kyc_studio_bp.route("/", methods=["POST"])
@jwt_required()
@role_required(UserRole.STUDIO)
@validate_schema(KYCSubmitSchema)
def submit_kyc(current_user):
    """Submit identity documents for verification"""
    record = KYCService.submit(current_user.id, request.validated_data["documents"])
    return jsonify({"message": "KYC submitted for review", "kyc": record.to_dict()}), 201
