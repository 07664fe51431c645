from sqlalchemy import Column, Integer, String, DateTime
from src.model.base import Base, utcnow

SAVINGS_COUNT_KEY = "savings_count"


class GlobalStat(Base):
    __tablename__ = "stats"
    key = Column(String, primary_key=True)
    value = Column(Integer, nullable=False, default=0)


class SchemaVersion(Base):
    __tablename__ = "schema_version"
    version = Column(Integer, primary_key=True)
    applied_at = Column(DateTime, nullable=False, default=utcnow)
