import logging
import random
import string
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from marketplace.extensions import db
from marketplace.exceptions import ValidationError

logger = logging.getLogger(__name__)

SEQUENCE_ATTEMPTS = 5


def generate_order_number() -> str:
    """Generate unique order number"""
    timestamp = datetime.now().strftime('%Y%m%d%H%M%S')
    random_str = ''.join(random.choices(string.digits, k=4))
    return f'ORD{timestamp}{random_str}'


def generate_sequence_number(prefix: str, model) -> str:
    """Sequential human-readable reference, e.g. RET-000042"""
    count = db.session.query(db.func.count(model.id)).scalar() or 0
    return f'{prefix}-{count + 1:06d}'


def commit_with_sequence(record, field: str, prefix: str, write, attempts: int = SEQUENCE_ATTEMPTS):
    """Number ``record`` and commit whatever ``write`` stages for it.

    Two concurrent writers can count the same rows and pick the same number;
    the loser of that unique-key race rolls back and runs ``write`` again with
    a fresh number. Integrity errors on anything other than the number propagate.
    """
    model = type(record)
    column = getattr(model, field)
    for attempt in range(1, attempts + 1):
        number = generate_sequence_number(prefix, model)
        setattr(record, field, number)
        try:
            write()
            db.session.commit()
            return record
        except IntegrityError:
            db.session.rollback()
            taken = db.session.query(column).filter(column == number).first() is not None
            if not taken or attempt == attempts:
                raise
            logger.warning(f"{model.__name__} number {number} already taken, retrying")


def allowed_file(filename: str, allowed_extensions: set) -> bool:
    """Check if file extension is allowed"""
    return '.' in filename and \
           filename.rsplit('.', 1)[1].lower() in allowed_extensions


def is_blank(value) -> bool:
    return value is None or not str(value).strip()


def parse_enum(enum_class, value, field: str):
    """Coerce user input into ``enum_class`` or fail with a validation error"""
    try:
        return enum_class(value)
    except ValueError:
        raise ValidationError(f"Invalid {field} '{value}'")
