import logging
from marketplace.extensions import db
from marketplace.models.audit import AuditLog
from marketplace.enums import AuditSeverity

logger = logging.getLogger(__name__)


def _plain(value):
    return getattr(value, "value", value)


class AuditService:
    @staticmethod
    def log(action: str, resource: str, resource_id: str = None, description: str = "",
            actor_id: str = None, changes: dict = None,
            severity: AuditSeverity = AuditSeverity.INFO) -> AuditLog:
        """Record an audit row in the caller's transaction.

        ``changes`` maps field name to an ``(old, new)`` pair.
        """
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            resource=resource,
            resource_id=resource_id,
            description=description or action,
            changes=[
                {"field": field, "old": _plain(old), "new": _plain(new)}
                for field, (old, new) in (changes or {}).items()
            ],
            severity=severity,
        )
        db.session.add(entry)

        logger.info(f"audit {action} {resource}={resource_id} by {actor_id or 'system'}")
        return entry

    @staticmethod
    def get_logs(resource: str = None, resource_id: str = None, page: int = 1, per_page: int = 20):
        query = AuditLog.query
        if resource:
            query = query.filter_by(resource=resource)
        if resource_id:
            query = query.filter_by(resource_id=resource_id)
        return query.order_by(AuditLog.created_at.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )
