from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from cardapio.core.database import Base


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
    active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
