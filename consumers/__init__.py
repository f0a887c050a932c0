"""
Kafka Consumers package for submission workflow events.
"""

from .transition_notification_consumer import TransitionNotificationConsumer

__all__ = [
    'TransitionNotificationConsumer'
]
