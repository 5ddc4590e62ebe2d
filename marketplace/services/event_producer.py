from kafka import KafkaProducer
from kafka.errors import KafkaError
import json
import logging
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from flask import current_app

logger = logging.getLogger(__name__)


class WorkflowEventProducer:
    def __init__(self, bootstrap_servers: str, topic_prefix: str = ""):
        self.producer = KafkaProducer(
            bootstrap_servers=bootstrap_servers,
            value_serializer=lambda v: json.dumps(v).encode('utf-8'),
            key_serializer=lambda k: k.encode('utf-8') if k else None,
            acks='all',  # Wait for all replicas
            retries=3,
            max_in_flight_requests_per_connection=1,  # Ensure ordering per record
            linger_ms=10,
        )
        self.bootstrap_servers = bootstrap_servers
        self.topic = f"{topic_prefix}workflow-events"
        logger.info(f"Kafka Producer initialized: {bootstrap_servers}")

    def publish_status_changed(self, resource: str, record_id: str, from_status: Optional[str],
                               to_status: str, actor_id: Optional[str] = None,
                               metadata: Optional[Dict[str, Any]] = None) -> bool:
        """
        Publish a status transition to the workflow-events topic

        Args:
            resource: Workflow name (order, return_request, ticket, review, kyc)
            record_id: ID of the record that changed; used as the partition key
            from_status: Status before the transition (None on creation)
            to_status: Status after the transition
            actor_id: User who applied the transition
            metadata: Additional event data
        """
        message = {
            "resource": resource,
            "record_id": record_id,
            "event_type": "STATUS_CHANGED",
            "from_status": from_status,
            "to_status": to_status,
            "actor_id": actor_id,
            "metadata": metadata or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        try:
            # Events of one record stay in one partition
            future = self.producer.send(self.topic, key=record_id, value=message)
            record_metadata = future.get(timeout=10)

            logger.info(
                f"Published to {self.topic}: {resource}={record_id} "
                f"{from_status}->{to_status}, partition={record_metadata.partition}, "
                f"offset={record_metadata.offset}"
            )
            return True

        except Exception as e:
            logger.error(f"Failed to publish workflow event: {e}", exc_info=True)
            return False

    def flush(self):
        self.producer.flush()

    def close(self):
        self.producer.flush()
        self.producer.close()
        logger.info("Kafka Producer closed")


# Singleton instance
_producer_instance: Optional[WorkflowEventProducer] = None


def get_event_producer() -> Optional[WorkflowEventProducer]:
    """Get or create the singleton producer; None while publishing is disabled"""
    global _producer_instance
    if not current_app.config.get("KAFKA_ENABLED"):
        return None
    if _producer_instance is None:
        try:
            _producer_instance = WorkflowEventProducer(
                current_app.config["KAFKA_BOOTSTRAP_SERVERS"],
                current_app.config.get("KAFKA_TOPIC_PREFIX", ""),
            )
        except KafkaError as e:
            logger.error(f"Kafka unavailable, workflow events not published: {e}")
            return None
    return _producer_instance


def reset_event_producer():
    global _producer_instance
    if _producer_instance is not None:
        _producer_instance.close()
    _producer_instance = None
