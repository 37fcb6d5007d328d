"""Role model mirroring the role registry."""

from sqlalchemy import Column, Integer, String, Text, DateTime, func
from hrms.db.base import Base


class Role(Base):
    """Registered role with hierarchical level and JSON permissions.

    Rows are written by the role seed from the in-process registry; the
    registry stays the source of truth for decisions.
    """
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    level = Column(Integer, nullable=False, unique=True)
    permissions_json = Column(Text, nullable=True)  # JSON list of permission strings
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
