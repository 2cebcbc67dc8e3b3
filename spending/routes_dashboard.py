# spending/routes_dashboard.py

from fastapi import APIRouter, Request, Depends

from spending.config import SpendingConfig
from spending.deps import get_config, get_main_currency, get_store, templates
from spending.schemas import DashboardSummary
from spending.services.aggregate import summarize
from spending.services.store import TransactionStore

router = APIRouter()


def build_summary(
    store: TransactionStore = Depends(get_store),
    config: SpendingConfig = Depends(get_config),
    main_currency: str = Depends(get_main_currency),
) -> DashboardSummary:
    # Recomputed from the full list on every request
    return summarize(store.list(), config.categories, main_currency)


@router.get("/dashboard")
def dashboard_page(
    request: Request,
    summary: DashboardSummary = Depends(build_summary),
):
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "summary": summary,
            "main_currency": summary.main_currency,
        },
    )


@router.get("/api/dashboard")
def dashboard_data(summary: DashboardSummary = Depends(build_summary)):
    """Chart data: totals plus per-category, per-date and per-currency series."""
    return summary.model_dump(by_alias=True)
