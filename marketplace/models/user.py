from marketplace.models.base import BaseModel, SoftDeleteMixin, enum_column
from marketplace.extensions import db
from marketplace.enums import UserRole
import bcrypt


class User(BaseModel, SoftDeleteMixin):
    __tablename__ = "users"

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255))
    phone = db.Column(db.String(20))
    role = enum_column(UserRole, "user_roles", nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    is_verified = db.Column(db.Boolean, default=False, nullable=False)

    # Relationships
    customer_orders = db.relationship(
        "Order", backref="customer", lazy="dynamic", foreign_keys="Order.customer_id"
    )
    kyc = db.relationship(
        "KYCRecord",
        backref="user",
        uselist=False,
        foreign_keys="KYCRecord.user_id",
        cascade="all, delete-orphan",
    )  # 1 Studio - 1 KYC record

    def set_password(self, password: str):
        self.password_hash = bcrypt.hashpw(
            password.encode("utf-8"), bcrypt.gensalt()
        ).decode("utf-8")

    def check_password(self, password: str) -> bool:
        return bcrypt.checkpw(
            password.encode("utf-8"), self.password_hash.encode("utf-8")
        )

    def has_role(self, role: str) -> bool:
        return self.role == role

    def to_dict(self, include_sensitive=False):
        data = super().to_dict()
        if not include_sensitive:
            data.pop("password_hash", None)
            data.pop("deleted_at", None)
        return data
