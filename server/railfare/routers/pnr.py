"""PNR router for status enquiries and user booking history."""

from fastapi import APIRouter

from ..core.dependencies import PnrServiceDependency
from ..schemas.pnr import (
    BookingStatistics,
    PnrStatus,
    PnrStatusRequest,
    UserBookingsRequest,
    UserBookingsResponse,
    UserStatisticsRequest,
)
from ..services.pnr_service import PnrService

router = APIRouter(prefix="/v1/pnr", tags=["pnr"])


@router.post("/status", response_model=PnrStatus)
def pnr_status(
    request: PnrStatusRequest,
    pnr_service: PnrService = PnrServiceDependency,
) -> PnrStatus:
    """Booking and payment status for a PNR."""
    return pnr_service.get_status(request.pnr)


@router.post("/bookings", response_model=UserBookingsResponse)
def user_bookings(
    request: UserBookingsRequest,
    pnr_service: PnrService = PnrServiceDependency,
) -> UserBookingsResponse:
    return UserBookingsResponse(items=pnr_service.list_bookings(request.user_id, request.status))


@router.post("/statistics", response_model=BookingStatistics)
def user_statistics(
    request: UserStatisticsRequest,
    pnr_service: PnrService = PnrServiceDependency,
) -> BookingStatistics:
    return pnr_service.statistics(request.user_id)
