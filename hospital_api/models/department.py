from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from hospital_api.database import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    head_doctor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    contact_number = Column(String(20), nullable=True)
    location = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True)

    head_doctor = relationship("User")
