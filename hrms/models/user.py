"""User model with organizational placement."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from hrms.db.base import Base


class User(Base):
    """Platform user. Department and manager links drive assignment rules."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    department_id = Column(String(50), nullable=True, index=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    position = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    roles = relationship(
        "UserRole",
        back_populates="user",
        lazy="selectin",
        foreign_keys="[UserRole.user_id]",
        order_by="UserRole.assigned_at",
    )
