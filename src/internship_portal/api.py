from fastapi import APIRouter

from internship_portal.modules.applications import router as applications_router

api_router = APIRouter()

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])
