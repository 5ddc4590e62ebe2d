from marketplace.extensions import db
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
import uuid


def utcnow():
    return datetime.now(timezone.utc)


def enum_column(enum_class, name, **kwargs):
    """Enum column persisted by value ("pending"), not by member name"""
    return db.Column(
        db.Enum(
            enum_class,
            name=name,
            values_callable=lambda members: [m.value for m in members],
        ),
        **kwargs,
    )


class BaseModel(db.Model):
    """Base model with common fields and methods"""

    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @classmethod
    def compare_and_set(cls, record_id: str, expected_status, values: dict) -> bool:
        """Conditional UPDATE keyed on the current status.

        Returns False when no row still had ``expected_status``; the caller
        decides whether that is an idempotent no-op or a lost race.
        """
        values = dict(values)
        values.setdefault("updated_at", utcnow())
        updated = (
            db.session.query(cls)
            .filter(cls.id == record_id, cls.status == expected_status)
            .update(values, synchronize_session=False)
        )
        return updated == 1

    def to_dict(self):
        """Convert model to dictionary"""
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                result[column.name] = value.isoformat()
            elif isinstance(value, Decimal):
                result[column.name] = float(value)
            elif isinstance(value, Enum):
                result[column.name] = value.value
            else:
                result[column.name] = value
        return result


class SoftDeleteMixin:
    """Mixin for soft delete functionality"""

    deleted_at = db.Column(db.DateTime, nullable=True)

    @property
    def is_deleted(self):
        return self.deleted_at is not None
