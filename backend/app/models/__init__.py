"""Database models"""
from app.models.item import Item
from app.models.bom import BOM, BOMLine
from app.models.production_order import ProductionOrder
from app.models.inventory import InventoryBalance
from app.models.mrp import MRPRun, MRPRequirement
from app.models.audit_log import AuditLog

__all__ = [
    # Item master
    "Item",
    # Bills of materials
    "BOM",
    "BOMLine",
    # Production
    "ProductionOrder",
    # Inventory
    "InventoryBalance",
    # MRP
    "MRPRun",
    "MRPRequirement",
    # Audit
    "AuditLog",
]
