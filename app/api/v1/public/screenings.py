from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_staff_user, get_screening_coordinator
from app.core.exceptions import NotFoundError
from app.core.security import CurrentUser
from app.models.booking import BookedSeat
from app.models.screening import Screening
from app.schemas.common import ApiResponse, ErrorResponse
from app.schemas.screening import (
    ScreeningCreate,
    ScreeningUpdate,
    Screening as ScreeningSchema,
)
from app.services.coordinator import ScreeningCoordinator

router = APIRouter(prefix="/screenings", tags=["Screenings"])


def _ordered(query):
    return query.order_by(Screening.start_time).all()


# ---------------------------------------------------------------------------
# Screening CRUD (writes are staff only)
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=ApiResponse[ScreeningSchema],
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_screening(
    data: ScreeningCreate,
    coordinator: ScreeningCoordinator = Depends(get_screening_coordinator),
    current_user: CurrentUser = Depends(get_current_staff_user),
):
    """
    Schedule a movie in a hall.

    The hall must be free for the whole runtime of the movie: a screening may
    start exactly when the previous one ends, but never overlap it (409).
    """
    screening = coordinator.create_screening(data.model_dump())
    return {"message": "Screening created successfully", "data": screening}


@router.get("", response_model=ApiResponse[List[ScreeningSchema]])
def list_screenings(db: Session = Depends(get_db)):
    return {"message": "Screenings retrieved successfully", "data": _ordered(db.query(Screening))}


@router.get("/movie/{movie_id}", response_model=ApiResponse[List[ScreeningSchema]])
def list_movie_screenings(movie_id: str, db: Session = Depends(get_db)):
    screenings = _ordered(db.query(Screening).filter(Screening.movie_id == movie_id))
    return {"message": "Screenings retrieved successfully", "data": screenings}


@router.get("/theater/{theater_id}", response_model=ApiResponse[List[ScreeningSchema]])
def list_theater_screenings(theater_id: str, db: Session = Depends(get_db)):
    screenings = _ordered(db.query(Screening).filter(Screening.theater_id == theater_id))
    return {"message": "Screenings retrieved successfully", "data": screenings}


@router.get("/hall/{hall_id}", response_model=ApiResponse[List[ScreeningSchema]])
def list_hall_screenings(
    hall_id: str,
    theater_id: Optional[str] = Query(None, description="Hall ids are only unique per theater"),
    db: Session = Depends(get_db),
):
    query = db.query(Screening).filter(Screening.hall_id == hall_id)
    if theater_id:
        query = query.filter(Screening.theater_id == theater_id)
    return {"message": "Screenings retrieved successfully", "data": _ordered(query)}


@router.get("/date/{day}", response_model=ApiResponse[List[ScreeningSchema]])
def list_screenings_on_date(day: date, db: Session = Depends(get_db)):
    """Screenings starting on the given day (UTC)."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    query = db.query(Screening).filter(
        Screening.start_time >= start,
        Screening.start_time < start + timedelta(days=1),
    )
    return {"message": "Screenings retrieved successfully", "data": _ordered(query)}


@router.get("/{screening_id}", response_model=ApiResponse[ScreeningSchema])
def get_screening(screening_id: str, db: Session = Depends(get_db)):
    screening = db.query(Screening).filter(Screening.screening_id == screening_id).first()
    if not screening:
        raise NotFoundError(f"Screening with id {screening_id} not found")
    return {"message": "Screening retrieved successfully", "data": screening}


@router.patch("/{screening_id}", response_model=ApiResponse[ScreeningSchema])
def update_screening(
    screening_id: str,
    data: ScreeningUpdate,
    coordinator: ScreeningCoordinator = Depends(get_screening_coordinator),
    current_user: CurrentUser = Depends(get_current_staff_user),
):
    """Only the fields sent are changed; the merged slot is re-checked for overlaps."""
    screening = coordinator.update_screening(screening_id, data.model_dump(exclude_unset=True))
    return {"message": "Screening updated successfully", "data": screening}


@router.delete("/{screening_id}", response_model=ApiResponse[None])
def delete_screening(
    screening_id: str,
    coordinator: ScreeningCoordinator = Depends(get_screening_coordinator),
    current_user: CurrentUser = Depends(get_current_staff_user),
):
    """Removes the screening together with its bookings and seat reservations."""
    coordinator.delete_screening(screening_id)
    return {"message": "Screening deleted successfully", "data": None}


# ---------------------------------------------------------------------------
# Seat map
# ---------------------------------------------------------------------------


@router.get("/{screening_id}/booked-seats", response_model=ApiResponse[List[str]])
def get_booked_seats(screening_id: str, db: Session = Depends(get_db)):
    """Seat ids currently reserved for the screening. Empty when nothing is booked."""
    rows = (
        db.query(BookedSeat.seat_id)
        .filter(BookedSeat.screening_id == screening_id)
        .order_by(BookedSeat.seat_id)
        .all()
    )
    return {"message": "Seat bookings retrieved successfully", "data": [seat_id for (seat_id,) in rows]}
