import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from career_advisor.db.base import Base


def new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=new_user_id)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, default="")
    last_name = Column(String, default="")
    password_hash = Column(String, nullable=True)

    # Denormalized entitlement state, written back when a subscription lapses
    subscription_tier = Column(String, default="free", nullable=False)  # free | basic | premium | elite
    subscription_status = Column(String, default="active", nullable=False)  # active | canceled | expired | pending
    subscription_expires = Column(DateTime, nullable=True)

    stripe_customer_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
