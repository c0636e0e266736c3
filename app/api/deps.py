from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.security import CurrentUser, decode_token
from app.db.session import SessionLocal
from app.repositories.base import AbstractUnitOfWork
from app.repositories.sql import SqlAlchemyUnitOfWork
from app.services.coordinator import BookingCoordinator, ScreeningCoordinator
from app.services.movie_stats import SqlMovieStatsNotifier, StatsNotifier

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    if not credentials:
        raise UnauthorizedError("Not authenticated")
    user = decode_token(credentials.credentials)
    if not user:
        raise UnauthorizedError("Invalid or expired token")
    return user


def get_current_staff_user(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_staff:
        raise ForbiddenError("Staff privileges required")
    return current_user


def get_uow_factory() -> Callable[[], AbstractUnitOfWork]:
    return lambda: SqlAlchemyUnitOfWork(SessionLocal)


def get_stats_notifier() -> StatsNotifier:
    return SqlMovieStatsNotifier(SessionLocal)


def get_booking_coordinator(
    uow_factory: Callable[[], AbstractUnitOfWork] = Depends(get_uow_factory),
    stats_notifier: StatsNotifier = Depends(get_stats_notifier),
) -> BookingCoordinator:
    return BookingCoordinator(uow_factory, stats_notifier)


def get_screening_coordinator(
    uow_factory: Callable[[], AbstractUnitOfWork] = Depends(get_uow_factory),
    stats_notifier: StatsNotifier = Depends(get_stats_notifier),
) -> ScreeningCoordinator:
    return ScreeningCoordinator(uow_factory, stats_notifier)
