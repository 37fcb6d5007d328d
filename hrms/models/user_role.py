"""User-to-role assignment rows."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from hrms.db.base import Base


class UserRole(Base):
    """One row per role a user has held.

    ``active_user_id`` equals ``user_id`` while the row is active and is NULL
    otherwise. Its unique index is what limits a user to one active role:
    NULLs never collide, so any number of inactive rows may exist.
    """
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role_name = Column(String(50), ForeignKey("roles.name"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    active_user_id = Column(Integer, nullable=True, unique=True)
    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_at = Column(DateTime, server_default=func.now(), nullable=False)
    deactivated_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="roles", foreign_keys=[user_id])
