"""
Kafka Service for publishing submission transition events.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any
from kafka import KafkaProducer
from kafka.errors import KafkaError
import config.settings as settings

logger = logging.getLogger(__name__)


class KafkaService:
    """Service for handling Kafka operations."""

    def __init__(self):
        """Initialize Kafka service."""
        self.bootstrap_servers = settings.KAFKA_BOOTSTRAP_SERVERS
        self.transition_topic = settings.SUBMISSION_TRANSITION_TOPIC
        self.producer = None
        self._init_producer()

    def _init_producer(self) -> None:
        """Initialize Kafka producer."""
        try:
            self.producer = KafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                value_serializer=lambda x: json.dumps(x).encode('utf-8'),
                key_serializer=lambda x: x.encode('utf-8') if x else None,
                acks='all',  # Wait for all replicas to acknowledge
                retries=3,
                retry_backoff_ms=1000,
                request_timeout_ms=30000
            )
            logger.info(f"Kafka producer initialized with servers: {self.bootstrap_servers}")
        except Exception as e:
            logger.error(f"Failed to initialize Kafka producer: {e}")
            self.producer = None

    def publish_submission_transition(self, event: Dict[str, Any]) -> bool:
        """
        Publish an applied transition to the submission.transition topic.

        Messages are keyed by submission id so one submission's events stay ordered.

        Args:
            event: Transition event message (see SubmissionEvent.to_message)

        Returns:
            True if published successfully, False otherwise
        """
        message = dict(event)
        message['stage'] = 'transition'
        message['timestamp'] = self._get_timestamp()

        return self._publish_message(
            topic=self.transition_topic,
            key=str(event['submission_id']),
            value=message
        )

    def _publish_message(self, topic: str, key: str, value: Dict[str, Any]) -> bool:
        """
        Publish message to Kafka topic.

        Args:
            topic: Kafka topic name
            key: Message key
            value: Message value

        Returns:
            True if published successfully, False otherwise
        """
        if not self.producer:
            logger.error("Kafka producer not initialized")
            return False

        try:
            future = self.producer.send(topic, key=key, value=value)
            record_metadata = future.get(timeout=10)
            logger.info(
                f"Message published to {topic} - "
                f"partition: {record_metadata.partition}, "
                f"offset: {record_metadata.offset}"
            )
            return True

        except KafkaError as e:
            logger.error(f"Failed to publish message to {topic}: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error publishing to {topic}: {e}")
            return False

    def _get_timestamp(self) -> str:
        """Get current timestamp in ISO format."""
        return datetime.now(timezone.utc).isoformat()

    def close(self) -> None:
        """Close Kafka producer."""
        if self.producer:
            self.producer.close()
            logger.info("Kafka producer closed")
