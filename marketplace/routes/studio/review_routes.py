from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.review_service import ReviewService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema
from marketplace.schemas import ReviewReplySchema
from marketplace.enums import UserRole

review_studio_bp = Blueprint("reviews", __name__)


@review_studio_bp.route("/<review_id>/reply", methods=["POST"])
@jwt_required()
@role_required(UserRole.STUDIO)
@validate_schema(ReviewReplySchema)
def reply_to_review(review_id, current_user):
    review = ReviewService.reply(review_id, current_user.id, request.validated_data["message"])
    return jsonify({"message": "Response posted", "review": review.to_dict()}), 200
