import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid, func
from app.core.database import Base


class Document(Base):
    """Resume or other file uploaded by a user."""
    __tablename__ = "documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
