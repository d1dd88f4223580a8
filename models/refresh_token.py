"""
RefreshToken model: the single rotation slot of a user.
Fields:
- user_id (primary key) - FK to users.id
- token, expires_at: the current refresh token
- previous_token, previous_expires_at: the token replaced by the last rotation
"""
from datetime import timezone
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from identity.refresh import RefreshSlot, TokenWindow
from models.base_model import Base, TimestampMixin


def _as_utc(value):
    # SQLite hands timestamps back without tzinfo
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RefreshToken(TimestampMixin, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    token = Column(String(64), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    previous_token = Column(String(64), nullable=True)
    previous_expires_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="refresh_token")

    @staticmethod
    def columns_for(slot: RefreshSlot) -> dict:
        return {
            "token": slot.current.token,
            "expires_at": slot.current.expires_at,
            "previous_token": slot.previous.token if slot.previous else None,
            "previous_expires_at": slot.previous.expires_at if slot.previous else None,
        }

    def to_slot(self) -> RefreshSlot:
        previous = None
        if self.previous_token and self.previous_expires_at is not None:
            previous = TokenWindow(self.previous_token, _as_utc(self.previous_expires_at))
        return RefreshSlot(
            current=TokenWindow(self.token, _as_utc(self.expires_at)),
            previous=previous,
        )

    def __repr__(self):
        return f"<RefreshToken user={self.user_id}>"
