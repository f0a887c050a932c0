"""
Dependency injection configuration using Flask-Injector.
"""
from injector import Module, provider, singleton
from services.analysis_service import AnalysisService
from services.prompt_service import PromptService
from services.s3_service import S3Service
from services.kafka_service import KafkaService
from services.submission_service import SubmissionService
from services.submission_workflow_service import SubmissionWorkflowService
from services.notification_service import NotificationService
from services.points_ledger_service import PointsLedgerService
from services.user_service import UserService
from repositories.user_account_repository import UserAccountRepository
from repositories.submission_repository import SubmissionRepository
from repositories.submission_event_repository import SubmissionEventRepository
from repositories.points_credit_repository import PointsCreditRepository
from repositories.notification_repository import NotificationRepository
from repositories.image_draft_repository import ImageDraftRepository


class ServiceModule(Module):
    """Module that configures dependency injection bindings."""

    @singleton
    @provider
    def provide_prompt_service(self) -> PromptService:
        """Provide prompt service instance."""
        return PromptService()

    @singleton
    @provider
    def provide_s3_service(self) -> S3Service:
        """Provide S3 service instance."""
        return S3Service()

    @singleton
    @provider
    def provide_kafka_service(self) -> KafkaService:
        """Provide Kafka service instance."""
        return KafkaService()

    @singleton
    @provider
    def provide_analysis_service(self, prompt_service: PromptService) -> AnalysisService:
        """Provide analysis service instance with prompt service injected."""
        return AnalysisService(prompt_service)

    @singleton
    @provider
    def provide_submission_service(
        self,
        s3_service: S3Service,
        analysis_service: AnalysisService,
        draft_repository: ImageDraftRepository
    ) -> SubmissionService:
        """Provide submission draft service instance."""
        return SubmissionService(s3_service, analysis_service, draft_repository)

    @singleton
    @provider
    def provide_points_ledger_service(
        self,
        points_repository: PointsCreditRepository,
        account_repository: UserAccountRepository
    ) -> PointsLedgerService:
        """Provide points ledger service instance."""
        return PointsLedgerService(points_repository, account_repository)

    @singleton
    @provider
    def provide_notification_service(
        self,
        notification_repository: NotificationRepository,
        submission_repository: SubmissionRepository,
        event_repository: SubmissionEventRepository
    ) -> NotificationService:
        """Provide notification dispatcher instance."""
        return NotificationService(notification_repository, submission_repository, event_repository)

    @singleton
    @provider
    def provide_submission_workflow_service(
        self,
        submission_repository: SubmissionRepository,
        event_repository: SubmissionEventRepository,
        account_repository: UserAccountRepository,
        points_ledger: PointsLedgerService,
        notification_service: NotificationService,
        kafka_service: KafkaService,
        draft_repository: ImageDraftRepository,
        s3_service: S3Service
    ) -> SubmissionWorkflowService:
        """Provide submission workflow service instance with dependencies injected."""
        return SubmissionWorkflowService(
            submission_repository,
            event_repository,
            account_repository,
            points_ledger,
            notification_service,
            kafka_service,
            draft_repository,
            s3_service
        )

    @singleton
    @provider
    def provide_user_service(
        self,
        account_repository: UserAccountRepository,
        submission_repository: SubmissionRepository,
        points_ledger: PointsLedgerService
    ) -> UserService:
        """Provide user service instance."""
        return UserService(account_repository, submission_repository, points_ledger)

    # Repository Providers
    @singleton
    @provider
    def provide_user_account_repository(self) -> UserAccountRepository:
        """Provide user account repository instance."""
        return UserAccountRepository()

    @singleton
    @provider
    def provide_submission_repository(self) -> SubmissionRepository:
        """Provide submission repository instance."""
        return SubmissionRepository()

    @singleton
    @provider
    def provide_submission_event_repository(self) -> SubmissionEventRepository:
        """Provide submission event repository instance."""
        return SubmissionEventRepository()

    @singleton
    @provider
    def provide_points_credit_repository(self) -> PointsCreditRepository:
        """Provide points credit repository instance."""
        return PointsCreditRepository()

    @singleton
    @provider
    def provide_notification_repository(self) -> NotificationRepository:
        """Provide notification repository instance."""
        return NotificationRepository()

    @singleton
    @provider
    def provide_image_draft_repository(self) -> ImageDraftRepository:
        """Provide image draft repository instance."""
        return ImageDraftRepository()
