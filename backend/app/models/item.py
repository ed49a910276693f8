"""
Item model - master record for everything that appears on a BOM or an order
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class Item(Base):
    """
    Unified item master:
    - finished_good: Products built by production orders
    - component: Manufactured sub-assemblies used in other BOMs
    - raw_material: Purchased items (no BOM of their own)
    """
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    item_code = Column(String(50), unique=True, nullable=False, index=True)
    item_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    unit = Column(String(20), default='EA', nullable=False)

    # finished_good, component, raw_material
    item_type = Column(String(20), default='finished_good', nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    boms = relationship("BOM", back_populates="item", foreign_keys="BOM.item_id")
    inventory_balances = relationship("InventoryBalance", back_populates="item")
    production_orders = relationship("ProductionOrder", back_populates="item")

    def __repr__(self):
        return f"<Item {self.item_code}: {self.item_name}>"
