from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.review_service import ReviewService
from marketplace.utils.decorators import role_required
from marketplace.enums import UserRole
from marketplace.utils.validators import validate_schema
from marketplace.schemas import ReviewCreateSchema

review_bp = Blueprint("reviews", __name__)


@review_bp.route("/", methods=["POST"])
@jwt_required()
@role_required(UserRole.CUSTOMER)
@validate_schema(ReviewCreateSchema)
def create_review(current_user):
    """Write a review; it stays pending until moderated"""
    data = request.validated_data
    review = ReviewService.create_review(user_id=current_user.id, **data)
    return jsonify({"message": "Review submitted for moderation", "review": review.to_dict()}), 201


@review_bp.route("/summary/<target_type>/<target_id>", methods=["GET"])
@jwt_required()
@role_required(UserRole.CUSTOMER)
def rating_summary(target_type, target_id, current_user):
    return jsonify({"summary": ReviewService.rating_summary(target_type, target_id)}), 200
