"""Librarian report routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database.report_repository import ReportRepository
from ...database.transaction_repository import TransactionRepository
from ..dependencies import get_db, get_transactions, require_librarian
from ..envelope import success

router = APIRouter(
    prefix="/api/reports",
    tags=["reports"],
    dependencies=[Depends(require_librarian)],
)


def get_reports(
    session: Session = Depends(get_db),
    transactions: TransactionRepository = Depends(get_transactions),
) -> ReportRepository:
    return ReportRepository(session, transactions)


@router.get("/dashboard")
def dashboard(reports: ReportRepository = Depends(get_reports)):
    return success(reports.dashboard())


@router.get("/reserved-today")
def reserved_today(reports: ReportRepository = Depends(get_reports)):
    return success(reports.reserved_today())


@router.get("/issued")
def issued_books(reports: ReportRepository = Depends(get_reports)):
    return success(reports.issued())


@router.get("/overdue")
def overdue_returns(reports: ReportRepository = Depends(get_reports)):
    return success(reports.overdue())


@router.get("/active")
def active_issues(reports: ReportRepository = Depends(get_reports)):
    return success(reports.active())
