"""
Bill of Materials models

A BOM header identifies one version of the recipe for a produced item;
its lines list the components needed to build one unit.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class BOM(Base):
    """
    BOM header. Only active BOMs are used by MRP; when an item has more
    than one active BOM the highest version wins.
    """
    __tablename__ = "boms"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey('items.id'), nullable=False, index=True)
    bom_code = Column(String(50), nullable=True)
    version = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    item = relationship("Item", back_populates="boms", foreign_keys=[item_id])
    lines = relationship("BOMLine", back_populates="bom",
                         cascade="all, delete-orphan", order_by="BOMLine.line_number")

    def __repr__(self):
        return f"<BOM {self.bom_code or self.id} v{self.version} for item {self.item_id}>"


class BOMLine(Base):
    """One component of a BOM, per unit of the parent item."""
    __tablename__ = "bom_lines"

    id = Column(Integer, primary_key=True, index=True)
    bom_id = Column(Integer, ForeignKey('boms.id', ondelete='CASCADE'), nullable=False, index=True)
    line_number = Column(Integer, nullable=False, default=1)
    component_item_id = Column(Integer, ForeignKey('items.id'), nullable=False, index=True)

    quantity_per_unit = Column(Numeric(18, 4), nullable=False)
    # Whole-number percent: 5 means 5% expected waste
    scrap_percentage = Column(Numeric(5, 2), default=0, nullable=False)

    notes = Column(Text, nullable=True)

    # Relationships
    bom = relationship("BOM", back_populates="lines")
    component = relationship("Item", foreign_keys=[component_item_id])

    def __repr__(self):
        return f"<BOMLine {self.line_number}: {self.quantity_per_unit} x item {self.component_item_id}>"
