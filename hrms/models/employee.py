"""Employee record model."""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Numeric, ForeignKey, JSON, func
from hrms.db.base import Base


class Employee(Base):
    """HR record for a person. ``user_id`` is the record's subject identity."""
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_code = Column(String(50), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, unique=True)
    full_name = Column(String(255), nullable=False)
    department_id = Column(String(50), nullable=True, index=True)
    position = Column(String(100), nullable=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    email = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    work_location = Column(String(255), nullable=True)
    employment_status = Column(String(20), default="active", nullable=False)
    employment_type = Column(String(20), default="full_time", nullable=False)
    hire_date = Column(Date, nullable=True)
    skills = Column(JSON, nullable=True)

    date_of_birth = Column(Date, nullable=True)
    home_address = Column(String(500), nullable=True)

    salary = Column(Numeric(12, 2), nullable=True)
    salary_grade = Column(String(20), nullable=True)
    emergency_contact = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self) -> dict:
        """Plain mapping of every column, in declaration order."""
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
