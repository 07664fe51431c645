from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from src.model.base import Base, utcnow


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (UniqueConstraint("email", "store_name", name="uq_subscriptions_email_store"),)
    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False)
    store_name = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "storeName": self.store_name,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
