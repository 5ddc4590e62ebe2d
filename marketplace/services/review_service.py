import logging

from sqlalchemy import func

from marketplace.extensions import db
from marketplace.models.review import Review
from marketplace.models.order import Order, OrderItem
from marketplace.models.base import utcnow
from marketplace.enums import ReviewStatus, ReviewTargetType, OrderStatus, ItemType, AuditSeverity
from marketplace.exceptions import ValidationError, NotFound, IllegalTransition, ConcurrentUpdate
from marketplace.services.audit_service import AuditService
from marketplace.utils.helpers import is_blank, parse_enum
from marketplace.utils.kafka_utils import send_status_event

logger = logging.getLogger(__name__)

# Moderators may move a review between these freely; pending is only the initial state
MODERATION_TARGETS = {ReviewStatus.APPROVED, ReviewStatus.REJECTED, ReviewStatus.FLAGGED}


class ReviewService:
    @staticmethod
    def _target_items(target_type: ReviewTargetType, target_id: str):
        """Order lines for the reviewed item; ids are only unique within a type"""
        return db.session.query(OrderItem.id).filter(
            OrderItem.item_type == ItemType(ReviewTargetType(target_type).value),
            OrderItem.item_id == target_id,
        )

    @staticmethod
    def is_verified_purchase(user_id: str, target_type: ReviewTargetType, target_id: str) -> bool:
        return (
            ReviewService._target_items(target_type, target_id)
            .join(Order, Order.id == OrderItem.order_id)
            .filter(
                Order.customer_id == user_id,
                Order.status == OrderStatus.DELIVERED,
            )
            .first()
            is not None
        )

    @staticmethod
    def create_review(user_id: str, target_type: str, target_id: str, rating: int,
                      comment: str, title: str = None) -> Review:
        target_type = parse_enum(ReviewTargetType, target_type, "target type")
        if is_blank(target_id):
            raise ValidationError("Target id is required")
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be an integer between 1 and 5")
        if is_blank(comment):
            raise ValidationError("Comment is required")

        exists = Review.query.filter_by(
            target_type=target_type, target_id=target_id, user_id=user_id
        ).first()
        if exists:
            raise ValidationError("You have already reviewed this item")

        review = Review(
            target_type=target_type,
            target_id=target_id,
            user_id=user_id,
            rating=rating,
            title=title.strip() if title else None,
            comment=comment.strip(),
            status=ReviewStatus.PENDING,
            is_verified_purchase=ReviewService.is_verified_purchase(
                user_id, target_type, target_id
            ),
        )
        db.session.add(review)
        db.session.commit()

        logger.info(f"Review {review.id} created for {target_type.value} {target_id}")
        return review

    @staticmethod
    def get_review(review_id: str) -> Review:
        review = db.session.get(Review, review_id)
        if not review:
            raise NotFound("Review not found")
        return review

    @staticmethod
    def get_reviews(status: str = None, target_type: str = None, target_id: str = None,
                    rating: int = None, page: int = 1, per_page: int = 20):
        query = Review.query
        if status:
            query = query.filter(Review.status == parse_enum(ReviewStatus, status, "status"))
        if target_type:
            query = query.filter(Review.target_type == parse_enum(ReviewTargetType, target_type, "target type"))
        if target_id:
            query = query.filter_by(target_id=target_id)
        if rating:
            query = query.filter_by(rating=rating)
        return query.order_by(Review.created_at.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )

    @staticmethod
    def moderate(review_id: str, new_status: str, moderator_id: str = None) -> Review:
        review = ReviewService.get_review(review_id)
        target = parse_enum(ReviewStatus, new_status, "status")
        if target not in MODERATION_TARGETS:
            raise IllegalTransition(f"Reviews cannot be moved back to {target.value}")

        current = ReviewStatus(review.status)
        if current == target:
            return review

        try:
            if not Review.compare_and_set(review.id, current, {"status": target}):
                db.session.rollback()
                fresh = db.session.get(Review, review_id)
                if fresh is not None and fresh.status == target:
                    return fresh
                raise ConcurrentUpdate("Review was moderated by another request")
            AuditService.log(
                "REVIEW_MODERATED", "review", review_id,
                f"Review {current.value} -> {target.value}",
                actor_id=moderator_id,
                changes={"status": (current, target)},
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        send_status_event("review", review_id, current, target, actor_id=moderator_id)
        return db.session.get(Review, review_id)

    @staticmethod
    def bulk_moderate(review_ids: list, new_status: str, moderator_id: str = None) -> dict:
        """Moderate each review independently; failures are reported per id"""
        updated, failed = [], {}
        for review_id in review_ids:
            try:
                ReviewService.moderate(review_id, new_status, moderator_id)
                updated.append(review_id)
            except (NotFound, ConcurrentUpdate, IllegalTransition, ValidationError) as e:
                failed[review_id] = e.message
        return {"updated": updated, "failed": failed}

    @staticmethod
    def delete(review_id: str, moderator_id: str = None):
        review = ReviewService.get_review(review_id)
        AuditService.log(
            "REVIEW_DELETED", "review", review_id,
            f"Review on {review.target_type.value} {review.target_id} deleted",
            actor_id=moderator_id, severity=AuditSeverity.WARNING,
        )
        db.session.delete(review)
        db.session.commit()

    @staticmethod
    def reply(review_id: str, seller_id: str, message: str) -> Review:
        """Studio response to a review on one of its own items"""
        review = ReviewService.get_review(review_id)
        if is_blank(message):
            raise ValidationError("Message is required")

        owns_target = (
            ReviewService._target_items(review.target_type, review.target_id)
            .filter(OrderItem.seller_id == seller_id)
            .first()
        )
        if owns_target is None:
            raise NotFound("Review not found")

        review.seller_response = message.strip()
        review.responded_at = utcnow()
        db.session.commit()
        return review

    @staticmethod
    def rating_summary(target_type: str, target_id: str) -> dict:
        rows = (
            db.session.query(Review.rating, func.count(Review.id))
            .filter(
                Review.target_type == parse_enum(ReviewTargetType, target_type, "target type"),
                Review.target_id == target_id,
                Review.status == ReviewStatus.APPROVED,
            )
            .group_by(Review.rating)
            .all()
        )
        distribution = {rating: 0 for rating in range(1, 6)}
        for rating, count in rows:
            distribution[rating] = count

        total = sum(distribution.values())
        average = sum(r * c for r, c in distribution.items()) / total if total else 0
        return {
            "average": round(average, 2),
            "total": total,
            "distribution": distribution,
        }
