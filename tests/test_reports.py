"""Tests for the librarian reports."""

from datetime import datetime, timedelta

import pytest

T0 = datetime(2024, 3, 1, 9, 30)
TODAY = datetime(2024, 3, 10, 15, 0)


@pytest.fixture
def loans(reservation_repo, make_book, make_user):
    """Two issued loans (one overdue at TODAY) and one returned loan."""
    created = {}
    for name, issued_at in [
        ("overdue", TODAY - timedelta(days=10)),
        ("current", TODAY - timedelta(days=2)),
        ("returned", TODAY - timedelta(days=20)),
    ]:
        book = make_book(f"{name.title()} Book", "Author", "Category")
        reservation = reservation_repo.create(make_user().user.id, book.id, now=issued_at)
        reservation_repo.transition(reservation.id, "Approved", now=issued_at)
        reservation_repo.transition(reservation.id, "Issued", now=issued_at)
        created[name] = reservation
    reservation_repo.transition(
        created["returned"].id, "Returned", now=TODAY - timedelta(days=15)
    )
    return created


class TestReservedToday:
    def test_only_todays_open_reservations(self, report_repo, reservation_repo, make_book, make_user):
        book = make_book(copies_total=5)
        pending = reservation_repo.create(make_user().user.id, book.id, now=TODAY.replace(hour=8))
        approved = reservation_repo.create(make_user().user.id, book.id, now=TODAY.replace(hour=9))
        reservation_repo.transition(approved.id, "Approved", now=TODAY.replace(hour=10))
        cancelled = reservation_repo.create(make_user().user.id, book.id, now=TODAY.replace(hour=11))
        reservation_repo.cancel(cancelled.id, cancelled.user_id)
        reservation_repo.create(make_user().user.id, book.id, now=TODAY - timedelta(days=1))
        reservation_repo.create(make_user().user.id, book.id, now=TODAY + timedelta(days=1))

        results = report_repo.reserved_today(now=TODAY)

        assert [r.id for r in results] == [approved.id, pending.id]
        assert results[0].user.email.endswith("@campus.edu")
        assert results[0].book.title == "The Hobbit"
        assert report_repo.dashboard(now=TODAY).reserved_today == 2

    def test_midnight_is_today(self, report_repo, reservation_repo, make_book, student):
        midnight = TODAY.replace(hour=0, minute=0)
        reservation_repo.create(student.user.id, make_book().id, now=midnight)
        assert len(report_repo.reserved_today(now=TODAY)) == 1


class TestLoanReports:
    def test_issued_newest_first(self, report_repo, loans):
        issued = report_repo.issued()
        assert [t.reservation_id for t in issued] == [loans["current"].id, loans["overdue"].id]
        assert issued[0].book.title == "Current Book"
        assert issued[0].user is not None

    def test_active_matches_issued(self, report_repo, loans):
        assert report_repo.active() == report_repo.issued()

    def test_overdue_with_projected_fine(self, report_repo, transaction_repo, loans):
        overdue = report_repo.overdue(now=TODAY)

        assert len(overdue) == 1
        entry = overdue[0]
        assert entry.reservation_id == loans["overdue"].id
        assert entry.late_days == 3
        assert entry.calculated_fine == 30
        # The projection is not stored
        assert transaction_repo.get_by_reservation(loans["overdue"].id).fine_amount == 0

    def test_overdue_sorted_by_due_date(self, report_repo, loans):
        later = TODAY + timedelta(days=30)
        overdue = report_repo.overdue(now=later)
        assert [t.reservation_id for t in overdue] == [loans["overdue"].id, loans["current"].id]

    def test_overdue_json_keys(self, report_repo, loans):
        data = report_repo.overdue(now=TODAY)[0].model_dump(by_alias=True, mode="json")
        assert data["lateDays"] == 3
        assert data["calculatedFine"] == 30


class TestDashboard:
    def test_counts(self, report_repo, reservation_repo, make_book, student, loans):
        make_book("Spare", "Author", "Category", copies_total=2)
        reservation_repo.create(student.user.id, make_book("Extra", "A", "C").id, now=TODAY)

        stats = report_repo.dashboard(now=TODAY)

        assert stats.total_books == 5
        # The two books still out on loan have no copy left
        assert stats.available_books == 3
        assert stats.active_issues == 2
        assert stats.overdue_returns == 1
        assert stats.pending_reservations == 1
        assert stats.total_transactions == 3
        assert stats.reserved_today == 1

    def test_empty_library(self, report_repo):
        stats = report_repo.dashboard(now=TODAY)
        assert stats.model_dump(by_alias=True) == {
            "reservedToday": 0,
            "totalBooks": 0,
            "availableBooks": 0,
            "activeIssues": 0,
            "overdueReturns": 0,
            "pendingReservations": 0,
            "totalTransactions": 0,
        }
