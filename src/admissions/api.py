from fastapi import APIRouter

from admissions.modules.applications.admin_router import router as admin_applications_router
from admissions.modules.applications.router import router as applications_router
from admissions.modules.audit import router as audit_router
from admissions.modules.auth import router as auth_router
from admissions.modules.documents.router import router as documents_router
from admissions.modules.profiles.router import router as profiles_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(
    admin_applications_router,
    prefix="/admin/applications",
    tags=["Admin - Applications"],
)

api_router.include_router(audit_router, prefix="/admin/logs", tags=["Admin - Audit Log"])

api_router.include_router(documents_router, prefix="/documents", tags=["Documents"])

api_router.include_router(profiles_router, prefix="/profile", tags=["Profiles"])
