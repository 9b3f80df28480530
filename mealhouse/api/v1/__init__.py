"""API v1 routes."""

from fastapi import APIRouter

from mealhouse.api.v1 import admin, auth, health, houses, orders, plans

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(houses.router, prefix="/houses", tags=["houses"])
router.include_router(plans.router, prefix="/plans", tags=["meal-plans"])
router.include_router(orders.router, prefix="/orders", tags=["orders"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
