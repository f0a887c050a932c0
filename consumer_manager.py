"""
Kafka Consumer Manager for running submission workflow consumers.
"""
import logging
import threading
import signal
import sys
from typing import List
from concurrent.futures import ThreadPoolExecutor, as_completed

from consumers import TransitionNotificationConsumer
from services.notification_service import NotificationService
from repositories.notification_repository import NotificationRepository
from repositories.submission_repository import SubmissionRepository
from repositories.submission_event_repository import SubmissionEventRepository

logger = logging.getLogger(__name__)


class ConsumerManager:
    """Manager for running multiple Kafka consumers."""

    def __init__(self, workers_per_consumer: int = 1):
        """Initialize consumer manager."""
        self.workers_per_consumer = workers_per_consumer
        self.consumers = []
        self.executor = None
        self.shutdown_event = threading.Event()

        # Set up signal handlers for graceful shutdown
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down consumers...")
        self.shutdown()

    def _create_consumers(self) -> List:
        """Create consumer instances with their dependencies."""
        logger.info("Initializing services and repositories...")

        notification_service = NotificationService(
            NotificationRepository(),
            SubmissionRepository(),
            SubmissionEventRepository()
        )

        logger.info("Creating consumer instances...")

        # Instances share a consumer group, so partitions are spread across them
        consumers = [
            TransitionNotificationConsumer(notification_service)
            for _ in range(self.workers_per_consumer)
        ]

        logger.info(f"Created {len(consumers)} consumer instances")
        return consumers

    def start(self) -> None:
        """Start all consumers in separate threads."""
        logger.info("Starting Kafka consumer manager...")

        try:
            self.consumers = self._create_consumers()

            if not self.consumers:
                logger.error("No consumers were created")
                return

            self.executor = ThreadPoolExecutor(
                max_workers=len(self.consumers),
                thread_name_prefix="kafka-consumer"
            )

            futures = []
            for i, consumer in enumerate(self.consumers):
                consumer_name = f"{consumer.__class__.__name__}-{i + 1}"
                logger.info(f"Starting consumer {i+1}/{len(self.consumers)}: {consumer_name}")

                future = self.executor.submit(self._run_consumer, consumer, consumer_name)
                futures.append(future)

            logger.info(f"Successfully started {len(self.consumers)} consumers")

            # Wait for consumers to complete or shutdown signal
            for future in as_completed(futures):
                try:
                    future.result()
                except Exception as e:
                    logger.error(f"Consumer failed: {e}")

        except Exception as e:
            logger.error(f"Error starting consumers: {e}")
            self.shutdown()
            raise

    def _run_consumer(self, consumer, consumer_name: str) -> None:
        """Run a single consumer with error handling."""
        try:
            logger.info(f"Consumer {consumer_name} started")
            consumer.process_messages()
        except Exception as e:
            logger.error(f"Consumer {consumer_name} failed: {e}")
            raise
        finally:
            logger.info(f"Consumer {consumer_name} stopped")

    def shutdown(self) -> None:
        """Shutdown all consumers gracefully."""
        if self.shutdown_event.is_set():
            return
        logger.info("Shutting down consumer manager...")

        self.shutdown_event.set()

        for consumer in self.consumers:
            try:
                if hasattr(consumer, 'consumer') and consumer.consumer:
                    consumer.consumer.close()
            except Exception as e:
                logger.error(f"Error closing consumer: {e}")

        if self.executor:
            logger.info("Shutting down thread pool...")
            self.executor.shutdown(wait=True)

        logger.info("Consumer manager shutdown complete")


def main():
    """Main entry point for running consumers."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler('kafka_consumers.log')
        ]
    )

    logger.info("Starting Kafka consumers for submission notifications...")

    # Note: Database should already be initialized by the main Flask application
    logger.info("Assuming database is already initialized by main application")

    manager = ConsumerManager()

    try:
        manager.start()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        sys.exit(1)
    finally:
        manager.shutdown()
        logger.info("Application stopped")


if __name__ == "__main__":
    main()
