from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_staff_user
from app.core.exceptions import NotFoundError
from app.core.security import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.screening import MovieStats
from app.services.movie_stats import get_movie_stats

router = APIRouter(prefix="/movies", tags=["Admin - Movie Stats"])


@router.get("/{movie_id}/stats", response_model=ApiResponse[MovieStats])
def read_movie_stats(
    movie_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_staff_user),
):
    """
    Bookings recorded for a movie over the retention window, with seat
    totals per day. Counters are written after each booking commits, so
    they may briefly lag behind the bookings table.
    """
    stats = get_movie_stats(db, movie_id)
    if stats is None:
        raise NotFoundError(f"No stats recorded for movie {movie_id}")
    return {"message": "Movie stats retrieved successfully", "data": stats}
