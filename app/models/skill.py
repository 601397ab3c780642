import enum
import uuid
from sqlalchemy import Column, String, Enum, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from app.core.database import Base


class SkillLevel(str, enum.Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    EXPERT = "EXPERT"

    @property
    def rank(self) -> int:
        return SKILL_LEVEL_RANK[self]


SKILL_LEVEL_RANK = {
    SkillLevel.BEGINNER: 1,
    SkillLevel.INTERMEDIATE: 2,
    SkillLevel.EXPERT: 3,
}


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String, unique=True, nullable=False)

    def __repr__(self):
        return f"<Skill(id={self.id}, name='{self.name}')>"


class UserSkill(Base):
    """A skill held by a user at a given level."""
    __tablename__ = "user_skills"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(Uuid, ForeignKey("skills.id", ondelete="CASCADE"), nullable=False, index=True)
    level = Column(Enum(SkillLevel), nullable=False)

    user = relationship("User", back_populates="skills")
    skill = relationship("Skill")

    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", name="uq_user_skills_user_skill"),
    )
