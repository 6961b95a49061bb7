"""API Routes."""

from fastapi import APIRouter

from .analytics import router as analytics_router
from .articles import router as articles_router
from .attachments import router as attachments_router
from .authors import router as authors_router
from .backup import router as backup_router
from .exports import router as exports_router
from .files import router as files_router
from .health import router as health_router
from .imports import router as imports_router
from .payments import router as payments_router
from .publications import router as publications_router
from .saved_views import router as saved_views_router
from .submissions import router as submissions_router
from .utilities import router as utilities_router

# Create main API router
api_router = APIRouter()

# Include route modules
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(authors_router)
api_router.include_router(articles_router)
api_router.include_router(attachments_router)
api_router.include_router(payments_router)
api_router.include_router(publications_router)
api_router.include_router(analytics_router)
api_router.include_router(exports_router)
api_router.include_router(backup_router)
api_router.include_router(submissions_router)
api_router.include_router(utilities_router)
api_router.include_router(saved_views_router)
api_router.include_router(imports_router)
api_router.include_router(files_router)
