"""API v1 endpoints"""

from .applications import router as applications_router
from .job_offers import router as job_offers_router

__all__ = ["applications_router", "job_offers_router"]
