"""
Reservation routes.

Students create, list and cancel their own reservations; librarians see
all of them and move them through the lifecycle.
"""

from fastapi import APIRouter, Depends

from ...database.reservation_repository import ReservationRepository
from ...models.reservation import ReservationCreate, ReservationStatus, StatusUpdate
from ...models.user import User
from ..dependencies import current_user, get_reservations, require_librarian, require_student
from ..envelope import success

router = APIRouter(prefix="/api/reservations", tags=["reservations"])


@router.post("", status_code=201)
def create_reservation(
    payload: ReservationCreate,
    user: User = Depends(require_student),
    reservations: ReservationRepository = Depends(get_reservations),
):
    reservation = reservations.create(user.id, payload.book_id)
    return success(reservation, message="Reservation created successfully")


# Registered before "/{reservation_id}" so "my" is not taken as an ID
@router.get("/my")
def my_reservations(
    status: ReservationStatus | None = None,
    user: User = Depends(current_user),
    reservations: ReservationRepository = Depends(get_reservations),
):
    return success(reservations.list_for_user(user.id, status))


@router.get("", dependencies=[Depends(require_librarian)])
def all_reservations(
    status: ReservationStatus | None = None,
    reservations: ReservationRepository = Depends(get_reservations),
):
    return success(reservations.list_all(status))


@router.get("/{reservation_id}")
def get_reservation(
    reservation_id: str,
    user: User = Depends(current_user),
    reservations: ReservationRepository = Depends(get_reservations),
):
    return success(reservations.get_for_caller(reservation_id, user))


@router.put("/{reservation_id}/status", dependencies=[Depends(require_librarian)])
def update_status(
    reservation_id: str,
    payload: StatusUpdate,
    reservations: ReservationRepository = Depends(get_reservations),
):
    reservation = reservations.transition(
        reservation_id, payload.status, rejection_reason=payload.rejection_reason
    )
    return success(reservation, message=f"Reservation {reservation.status.lower()} successfully")


@router.put("/{reservation_id}/cancel")
def cancel_reservation(
    reservation_id: str,
    user: User = Depends(require_student),
    reservations: ReservationRepository = Depends(get_reservations),
):
    reservation = reservations.cancel(reservation_id, user.id)
    return success(reservation, message="Reservation cancelled successfully")
