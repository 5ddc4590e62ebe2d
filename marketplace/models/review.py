from marketplace.models.base import BaseModel, enum_column
from marketplace.extensions import db
from marketplace.enums import ReviewTargetType, ReviewStatus


class Review(BaseModel):
    __tablename__ = "reviews"

    target_type = enum_column(ReviewTargetType, "review_target_types", nullable=False, index=True)
    target_id = db.Column(db.String(36), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    rating = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(150))
    comment = db.Column(db.String(2000), nullable=False)
    status = enum_column(
        ReviewStatus, "review_statuses", default=ReviewStatus.PENDING, nullable=False, index=True
    )
    is_verified_purchase = db.Column(db.Boolean, default=False, nullable=False)

    # Seller response
    seller_response = db.Column(db.Text)
    responded_at = db.Column(db.DateTime)

    # One review per user per target
    __table_args__ = (
        db.UniqueConstraint("target_type", "target_id", "user_id"),
        db.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )
