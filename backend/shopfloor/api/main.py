from fastapi import APIRouter

from shopfloor.api.routes import labor, operations, orders, quality_checks

api_router = APIRouter()
api_router.include_router(orders.router)
api_router.include_router(operations.router)
api_router.include_router(quality_checks.router)
api_router.include_router(labor.router)
