"""Settings store model."""

from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from ..database import Base
from .variant import utcnow


class Setting(Base):
    """One runtime-editable setting, grouped by feature."""

    __tablename__ = "settings"
    __table_args__ = (
        UniqueConstraint("group", "key", name="uq_settings_group_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    group = Column(String(100), nullable=False)
    key = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, default="string")
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
