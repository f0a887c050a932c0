"""
Image draft model: an uploaded and analyzed image awaiting the owner's decision.
"""
from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime, timezone
from database import Base


class ImageDraft(Base):
    """Server-side copy of an undecided draft, consumed when the owner decides."""
    __tablename__ = 'image_drafts'

    image_ref = Column(String(1000), primary_key=True)  # image host object key, owner-prefixed
    owner_id = Column(String(128), nullable=False, index=True)
    analysis_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<ImageDraft {self.image_ref}>'
