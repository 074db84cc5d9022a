"""
Job Offer Endpoints
Cached detail, employer statistics and expiring-soon reads, and on-demand expiration
"""
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from application.services.application_queries import ApplicationQueryService
from application.services.expiration_sweeper import ExpirationSweeper
from presentation.api.v1.container import get_expiration_sweeper, get_query_service
from presentation.api.v1.dependencies import CurrentUser, require_admin, require_employer
from presentation.api.v1.schemas.applications import EmployerStatisticsResponse, ExpireJobOffersResponse


router = APIRouter()


# Fixed paths are declared before /job-offers/{job_offer_id}

@router.get("/job-offers/statistics/employer", response_model=EmployerStatisticsResponse)
async def get_own_statistics(
    current_user: CurrentUser = Depends(require_employer),
    queries: ApplicationQueryService = Depends(get_query_service),
):
    """Statistics of the calling employer's job offers"""
    return await queries.employer_statistics(current_user.id)


@router.get("/job-offers/statistics/employer/{employer_id}", response_model=EmployerStatisticsResponse)
async def get_employer_statistics(
    employer_id: UUID,
    _admin: CurrentUser = Depends(require_admin),
    queries: ApplicationQueryService = Depends(get_query_service),
):
    """Statistics of any employer's job offers"""
    return await queries.employer_statistics(employer_id)


@router.get("/job-offers/expiring-soon")
async def get_expiring_soon(
    days: int = Query(7, ge=1, le=365),
    current_user: CurrentUser = Depends(require_employer),
    queries: ApplicationQueryService = Depends(get_query_service),
) -> List[Dict[str, Any]]:
    """Open job offers of the calling employer that close within `days`"""
    return await queries.expiring_soon(current_user.id, days)


@router.get("/job-offers/{job_offer_id}")
async def get_job_offer(
    job_offer_id: UUID,
    queries: ApplicationQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    """Job offer detail"""
    return await queries.get_job_offer(job_offer_id)


@router.post("/job-offers/expire", response_model=ExpireJobOffersResponse)
async def expire_job_offers(
    _admin: CurrentUser = Depends(require_admin),
    sweeper: ExpirationSweeper = Depends(get_expiration_sweeper),
):
    """Run the expiration sweep now"""
    return ExpireJobOffersResponse(expired=await sweeper.sweep())
