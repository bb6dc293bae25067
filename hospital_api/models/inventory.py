from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, Enum, Integer, Numeric, String, Text
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.sql import func
import enum

from hospital_api.database import Base, enum_values


class InventoryCategory(str, enum.Enum):
    MEDICINE = "medicine"
    EQUIPMENT = "equipment"
    SUPPLIES = "supplies"
    LAB = "lab"


class InventoryItem(Base):
    __tablename__ = "inventory"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    category = Column(Enum(InventoryCategory, values_callable=enum_values), nullable=False)
    description = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit = Column(String(50), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    cost = Column(Numeric(10, 2), nullable=False)
    reorder_level = Column(Integer, nullable=False, default=10)
    supplier = Column(String(255), nullable=True)
    batch_number = Column(String(100), nullable=True)
    expiry_date = Column(Date, nullable=True)
    location = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @hybrid_property
    def is_low_stock(self):
        return self.quantity <= self.reorder_level
