from sqlalchemy import Column, String, Enum, Boolean
from rental_quotes.models.base import BaseModel
from rental_quotes.core.enums import UserRole


class User(BaseModel):
    __tablename__ = "users"
    username = Column(String(64), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.AGENT)
    is_active = Column(Boolean, nullable=False, default=True)
