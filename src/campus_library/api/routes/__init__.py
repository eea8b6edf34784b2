"""API routers, one per resource."""

from . import auth, books, health, reports, reservations

routers = [
    health.router,
    auth.router,
    books.router,
    reservations.router,
    reports.router,
]

__all__ = ["routers"]
