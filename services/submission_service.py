"""
Submission draft service: image upload plus hazard analysis.

A draft is the undecided pseudo-state of a submission. Only the analysis is
kept server-side here; the draft becomes a submission once the owner decides.
"""
import logging
from dataclasses import dataclass, asdict
from io import BytesIO
from typing import Dict, Any, Optional
from injector import inject
from PIL import Image, UnidentifiedImageError

import config.settings as settings
from database.connection import get_db_session
from models.submission import SubmissionStatus
from models.user_account import ActorRole
from repositories.image_draft_repository import ImageDraftRepository
from services.analysis_service import AnalysisService
from services.exceptions import InvalidActor, ValidationError
from services.s3_service import S3Service
from services.status_workflow import Actor

logger = logging.getLogger(__name__)


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and \
           filename.rsplit('.', 1)[1].lower() in settings.ALLOWED_EXTENSIONS


@dataclass
class SubmissionDraft:
    """Analyzed image awaiting the owner's recycle decision."""
    owner_id: str
    image_ref: str
    analysis_text: str
    image_url: Optional[str] = None
    status: str = SubmissionStatus.UNDECIDED

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SubmissionService:
    """Service creating undecided drafts from uploaded item images."""

    @inject
    def __init__(
        self,
        s3_service: S3Service,
        analysis_service: AnalysisService,
        draft_repository: ImageDraftRepository
    ):
        """Initialize submission service."""
        self.s3_service = s3_service
        self.analysis_service = analysis_service
        self.draft_repository = draft_repository

    def create_draft(self, actor: Actor, file_content: bytes, filename: str) -> SubmissionDraft:
        """
        Upload an item image and attach the hazard analysis.

        Args:
            actor: Uploading user
            file_content: Raw image bytes
            filename: Original (sanitized) filename

        Returns:
            SubmissionDraft in the undecided state

        Raises:
            InvalidActor: Actor is not a user
            ValidationError: Not an allowed image
            Unavailable: Upload or analysis failed; no draft is produced
        """
        if actor.role != ActorRole.USER:
            raise InvalidActor('Only users may submit items')
        if not filename or not allowed_file(filename):
            raise ValidationError(
                f"File type not allowed. Allowed types: {sorted(settings.ALLOWED_EXTENSIONS)}",
                field='file'
            )
        if not file_content:
            raise ValidationError('Empty file', field='file')

        image_format = self._verify_image(file_content)
        extension = filename.rsplit('.', 1)[1].lower()
        mime_type = self.s3_service.get_content_type(extension)

        logger.info(f"Creating draft for {actor.user_id}: {filename} ({image_format}, {len(file_content)} bytes)")

        upload = self.s3_service.upload_image(
            file_content=file_content,
            owner_id=actor.user_id,
            filename=filename
        )
        analysis_text = self.analysis_service.analyze_image(file_content, mime_type)

        with get_db_session() as session:
            self.draft_repository.save_draft(session, actor.user_id, upload['image_ref'], analysis_text)

        return SubmissionDraft(
            owner_id=actor.user_id,
            image_ref=upload['image_ref'],
            analysis_text=analysis_text,
            image_url=self.s3_service.generate_presigned_url(upload['image_ref'])
        )

    def _verify_image(self, file_content: bytes) -> str:
        try:
            image = Image.open(BytesIO(file_content))
            image.verify()
            return image.format or 'unknown'
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            logger.warning(f"Rejected upload that is not a valid image: {e}")
            raise ValidationError('Uploaded file is not a valid image', field='file')
