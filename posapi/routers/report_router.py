from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from posapi.core.session_context import SessionContext
from posapi.deps import get_report_service, get_session_context
from posapi.schemas.report import (
    DailySalesPoint,
    LowStockItem,
    MemberPurchaseRow,
    SalesSummary,
    SavingsReportRow,
)
from posapi.schemas.sale import SaleResponse
from posapi.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/summary", response_model=SalesSummary)
def summary(
    _: SessionContext = Depends(get_session_context),
    report_service: ReportService = Depends(get_report_service),
) -> SalesSummary:
    return report_service.summary()


@router.get("/daily-sales", response_model=List[DailySalesPoint])
def daily_sales(
    days: int = Query(7, ge=1, le=90),
    _: SessionContext = Depends(get_session_context),
    report_service: ReportService = Depends(get_report_service),
) -> List[DailySalesPoint]:
    return report_service.daily_sales(days=days)


@router.get("/low-stock", response_model=List[LowStockItem])
def low_stock(
    threshold: Optional[int] = Query(None, ge=0),
    _: SessionContext = Depends(get_session_context),
    report_service: ReportService = Depends(get_report_service),
) -> List[LowStockItem]:
    return report_service.low_stock(threshold)


@router.get("/member-purchases", response_model=List[MemberPurchaseRow])
def member_purchases(
    _: SessionContext = Depends(get_session_context),
    report_service: ReportService = Depends(get_report_service),
) -> List[MemberPurchaseRow]:
    return report_service.member_purchases()


@router.get("/savings", response_model=List[SavingsReportRow])
def savings_report(
    _: SessionContext = Depends(get_session_context),
    report_service: ReportService = Depends(get_report_service),
) -> List[SavingsReportRow]:
    return report_service.savings_report()


@router.get("/pending-debts", response_model=List[SaleResponse])
def pending_debts(
    _: SessionContext = Depends(get_session_context),
    report_service: ReportService = Depends(get_report_service),
) -> List[SaleResponse]:
    return report_service.pending_debts()
