from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, JSON
from sqlalchemy.orm import relationship


class User(BaseModel, Base):
    __tablename__ = "users"
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    roles = Column(JSON, nullable=True, default=lambda: ['user'])

    refresh_token = relationship(
        "RefreshToken",
        back_populates="user",
        uselist=False,
        passive_deletes=True
    )
