"""
API v1 Router - PlantOps
"""
from fastapi import APIRouter
from app.api.v1.endpoints import mrp

router = APIRouter()

# MRP (Material Requirements Planning)
router.include_router(mrp.router)
