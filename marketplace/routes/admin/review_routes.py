from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.review_service import ReviewService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema, validate_pagination, paginated_response
from marketplace.schemas import ReviewModerateSchema, ReviewBulkModerateSchema
from marketplace.enums import UserRole

review_admin_bp = Blueprint("reviews", __name__)


@review_admin_bp.route("/", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_reviews(current_user):
    page, per_page = validate_pagination()
    pagination = ReviewService.get_reviews(
        status=request.args.get("status"),
        target_type=request.args.get("target_type"),
        target_id=request.args.get("target_id"),
        rating=request.args.get("rating", type=int),
        page=page,
        per_page=per_page,
    )
    return paginated_response(pagination, "reviews")


@review_admin_bp.route("/bulk", methods=["PUT"])
@jwt_required()
@role_required(UserRole.ADMIN)
@validate_schema(ReviewBulkModerateSchema)
def bulk_moderate(current_user):
    data = request.validated_data
    result = ReviewService.bulk_moderate(data["review_ids"], data["status"], current_user.id)
    return jsonify(result), 200


@review_admin_bp.route("/<review_id>", methods=["PUT"])
@jwt_required()
@role_required(UserRole.ADMIN)
@validate_schema(ReviewModerateSchema)
def moderate_review(review_id, current_user):
    review = ReviewService.moderate(review_id, request.validated_data["status"], current_user.id)
    return jsonify({"message": "Review updated", "review": review.to_dict()}), 200


@review_admin_bp.route("/<review_id>", methods=["DELETE"])
@jwt_required()
@role_required(UserRole.ADMIN)
def delete_review(review_id, current_user):
    ReviewService.delete(review_id, current_user.id)
    return jsonify({"message": "Review deleted"}), 200
