"""
Image draft repository for undecided drafts.
"""
from typing import Optional
from datetime import datetime, timezone
from sqlalchemy.orm import Session

from repositories.base_repository import BaseRepository
from models.image_draft import ImageDraft


class ImageDraftRepository(BaseRepository[ImageDraft]):
    """Repository for ImageDraft entity operations."""

    def __init__(self):
        """Initialize ImageDraftRepository."""
        super().__init__(ImageDraft)

    def save_draft(self, session: Session, owner_id: str, image_ref: str, analysis_text: str) -> ImageDraft:
        """
        Store the analysis for an uploaded image.

        Re-analyzing the same image replaces the stored text.
        """
        draft = self.get_by_id(session, image_ref)
        if draft:
            draft.owner_id = owner_id
            draft.analysis_text = analysis_text
            draft.created_at = datetime.now(timezone.utc)
            session.flush()
            return draft

        return self.create(
            session,
            image_ref=image_ref,
            owner_id=owner_id,
            analysis_text=analysis_text,
            created_at=datetime.now(timezone.utc)
        )

    def get_for_owner(self, session: Session, owner_id: str, image_ref: str) -> Optional[ImageDraft]:
        """Get the owner's draft for an image, or None."""
        return session.query(ImageDraft).filter_by(owner_id=owner_id, image_ref=image_ref).first()

    def delete(self, session: Session, draft: ImageDraft) -> None:
        session.delete(draft)
        session.flush()
