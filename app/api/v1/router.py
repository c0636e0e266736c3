from fastapi import APIRouter

# Public: bookings and seat reservations
from app.api.v1.public.bookings import router as bookings_router

# Public: screenings (writes require staff)
from app.api.v1.public.screenings import router as screenings_router

# Admin
from app.api.v1.admin.movie_stats import router as movie_stats_router

api_router = APIRouter()

# --- Public: bookings ---
api_router.include_router(bookings_router)

# --- Public: screenings & seat map ---
api_router.include_router(screenings_router)

# --- Admin ---
api_router.include_router(movie_stats_router)
