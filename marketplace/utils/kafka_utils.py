import logging
from marketplace.services.event_producer import get_event_producer

logger = logging.getLogger(__name__)


def _status_value(status):
    return getattr(status, "value", status)


def send_status_event(resource, record_id, from_status, to_status, actor_id=None, **metadata):
    """Fire-and-log: a failed publish never undoes a committed transition"""
    producer = get_event_producer()
    if producer is None:
        logger.debug(f"Event publishing disabled, skipping {resource}={record_id}")
        return False

    success = producer.publish_status_changed(
        resource=resource,
        record_id=record_id,
        from_status=_status_value(from_status),
        to_status=_status_value(to_status),
        actor_id=actor_id,
        metadata=metadata,
    )

    if not success:
        logger.warning(
            f"Failed to publish status event for {resource} {record_id}. "
            "Downstream consumers will not see this transition."
        )
    return success
