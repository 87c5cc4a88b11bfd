from fastapi import APIRouter

from src.api.health.router import router as health_router
from src.api.organization.admin_router import router as organization_admin_router
from src.api.organization.router import router as organization_router
from src.api.organization.user_router import router as organization_user_router
from src.api.user.router import router as user_router

# V1 API router
v1_router = APIRouter(prefix="/v1")

# Include domain routers
v1_router.include_router(organization_router)
v1_router.include_router(organization_admin_router)
v1_router.include_router(organization_user_router)
v1_router.include_router(user_router)

# Main API router
api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(v1_router)
