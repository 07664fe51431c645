import enum

from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from src.model.base import Base, utcnow


class Tier(str, enum.Enum):
    FREE = "free"
    PRO = "pro"


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=True)
    tier = Column(String, nullable=False, default=Tier.FREE.value)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "tier": self.tier,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class SearchLog(Base):
    __tablename__ = "search_logs"
    __table_args__ = (Index("ix_search_logs_user_date", "user_id", "search_date"),)
    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    search_date = Column(Date, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    user = relationship("User")
