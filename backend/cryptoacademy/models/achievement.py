import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cryptoacademy.db.base import Base
from cryptoacademy.models._time import utcnow


class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), unique=True)
    description: Mapped[str] = mapped_column(String(1000), default="")
    badge_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # Module whose completion earns this badge, if any.
    module_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)


class UserAchievement(Base):
    __tablename__ = "user_achievements"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), index=True)
    achievement_id: Mapped[int] = mapped_column(Integer, ForeignKey("achievements.id"), index=True)

    meta: Mapped[str | None] = mapped_column(Text, nullable=True)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    achievement: Mapped[Achievement] = relationship(lazy="joined")

    __table_args__ = (UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),)
