"""
Transition Notification Consumer dispatching notifications for submission transitions.
"""
import json
import logging
from typing import Dict, Any
from kafka import KafkaConsumer
from injector import inject

from services.notification_service import NotificationService
import config.settings as settings

logger = logging.getLogger(__name__)


class TransitionNotificationConsumer:
    """Consumer for the submission.transition topic - derives notifications from transition events."""

    @inject
    def __init__(self, notification_service: NotificationService):
        """Initialize transition notification consumer."""
        self.notification_service = notification_service
        self.consumer = None

        self._init_consumer()

    def _init_consumer(self) -> None:
        """Initialize Kafka consumer."""
        try:
            self.consumer = KafkaConsumer(
                settings.SUBMISSION_TRANSITION_TOPIC,
                bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
                value_deserializer=lambda m: json.loads(m.decode('utf-8')),
                key_deserializer=lambda m: m.decode('utf-8') if m else None,
                group_id='submission-notification-group',
                auto_offset_reset='earliest',
                enable_auto_commit=True
            )
            logger.info("Transition notification consumer initialized")
        except Exception as e:
            logger.error(f"Failed to initialize transition notification consumer: {e}")
            self.consumer = None

    def process_messages(self) -> None:
        """Process messages from the submission.transition topic."""
        if not self.consumer:
            logger.error("Consumer not initialized")
            return

        logger.info("Starting transition notification message processing...")

        try:
            for message in self.consumer:
                try:
                    self._process_transition_message(message.value)
                except Exception as e:
                    logger.error(f"Error processing transition message: {e}")
        except KeyboardInterrupt:
            logger.info("Stopping transition notification consumer...")
        except Exception as e:
            logger.error(f"Error in transition notification consumer: {e}")
        finally:
            if self.consumer:
                self.consumer.close()

    def _process_transition_message(self, message: Dict[str, Any]) -> None:
        """Process a single transition message; redelivery is harmless."""
        submission_id = message.get('submission_id')
        if not submission_id or not message.get('to_status'):
            logger.error(f"Malformed transition message: {message}")
            return

        logger.info(
            f"Dispatching notifications for submission {submission_id} "
            f"({message.get('from_status')} -> {message['to_status']})"
        )
        notification = self.notification_service.handle_transition(message)
        if notification:
            logger.info(f"Notification {notification['id']} ready for submission {submission_id}")
