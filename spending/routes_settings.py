# routes_settings.py
"""
Routes for the settings page: main currency, CSV export and CSV import.
"""

import logging
from datetime import date

from fastapi import (
    APIRouter,
    Request,
    Depends,
    UploadFile,
    File,
    Form,
)
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from spending.config import SpendingConfig
from spending.deps import (
    UserSession,
    get_config,
    get_current_user,
    get_main_currency,
    get_store,
    render_error,
    set_main_currency,
    templates,
)
from spending.errors import CsvImportError, PersistenceError
from spending.services.csv_io import export_csv, export_filename, import_csv
from spending.services.store import TransactionStore

logger = logging.getLogger(__name__)

router = APIRouter()


def render_settings(
    request: Request,
    config: SpendingConfig,
    main_currency: str,
    user: UserSession,
    message: str = "",
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "settings.html",
        {
            "currencies": config.currencies,
            "main_currency": main_currency,
            "user": user,
            "backend": config.backend,
            "message": message,
        },
        status_code=status_code,
    )


@router.get("/settings", response_class=HTMLResponse)
def settings_page(
    request: Request,
    config: SpendingConfig = Depends(get_config),
    main_currency: str = Depends(get_main_currency),
    user: UserSession = Depends(get_current_user),
):
    return render_settings(request, config, main_currency, user)


@router.post("/settings/main-currency")
def update_main_currency(
    request: Request,
    currency: str = Form(...),
    config: SpendingConfig = Depends(get_config),
    main_currency: str = Depends(get_main_currency),
    user: UserSession = Depends(get_current_user),
):
    """
    Change the main currency for this user. Stored transactions keep the
    price_in_main they were written with.
    """
    currency = currency.strip().upper()
    if currency not in config.rates:
        return render_settings(
            request,
            config,
            main_currency,
            user,
            message=f"Unknown currency: {currency}",
            status_code=400,
        )

    set_main_currency(request, user, currency)
    logger.info("[settings] main currency for %r set to %s", user.uid, currency)
    return RedirectResponse(url="/settings", status_code=303)


# -------------------------------------------------------------------
# Export
# -------------------------------------------------------------------

@router.get("/export")
def export_transactions(
    store: TransactionStore = Depends(get_store),
    main_currency: str = Depends(get_main_currency),
):
    content = export_csv(store.list(), main_currency)
    filename = export_filename(date.today())
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# -------------------------------------------------------------------
# Import
# -------------------------------------------------------------------

@router.post("/import", response_class=HTMLResponse)
async def import_transactions(
    request: Request,
    csv_file: UploadFile = File(...),
    store: TransactionStore = Depends(get_store),
    config: SpendingConfig = Depends(get_config),
    main_currency: str = Depends(get_main_currency),
    user: UserSession = Depends(get_current_user),
):
    """
    Parse the uploaded CSV and append every accepted row in one store write.
    Rejected rows are dropped; only the imported count is reported.
    """
    content = await csv_file.read()

    try:
        # utf-8-sig handles a leading BOM
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")

    try:
        result = import_csv(text, main_currency, config.rates)
    except CsvImportError as e:
        logger.warning("[import] rejected %r: %s", csv_file.filename, e)
        return render_settings(request, config, main_currency, user, message=str(e), status_code=400)

    try:
        store.add_many(result.transactions)
    except PersistenceError as e:
        logger.error("[import] ERROR saving %d transaction(s): %r", result.imported, e)
        return render_error(request, "Error while importing transactions", e)

    return render_settings(request, config, main_currency, user, message=result.message)
