# routes_transactions.py
"""
Routes for the transactions list and the add / edit / delete flow.

The add/edit form is driven by TransactionForm:
- GET  /transactions/new          -> open_for_create
- GET  /transactions/{id}/edit    -> open_for_edit
- POST /transactions/save         -> submit (edit_id selects update vs add)
- POST /transactions/cancel       -> cancel
"""

import logging

from fastapi import APIRouter, Request, Depends, Form, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse

from spending.config import SpendingConfig
from spending.deps import (
    get_config,
    get_main_currency,
    get_store,
    render_error,
    templates,
)
from spending.errors import FormValidationError, PersistenceError, TransactionNotFoundError
from spending.services.aggregate import newest_first
from spending.services.form import TransactionForm
from spending.services.store import TransactionStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_form(
    store: TransactionStore = Depends(get_store),
    config: SpendingConfig = Depends(get_config),
    main_currency: str = Depends(get_main_currency),
) -> TransactionForm:
    return TransactionForm(store, config.rates, main_currency)


def render_form(request: Request, form: TransactionForm, config: SpendingConfig, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "transaction_form.html",
        {
            "form": form,
            "fields": form.fields,
            "editing": form.editing,
            "error": form.error,
            "currencies": config.currencies,
            "categories": config.categories,
            "payment_methods": config.payment_methods,
        },
        status_code=status_code,
    )


def _find_or_404(store: TransactionStore, transaction_id: str):
    record = store.get(transaction_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return record


# -------------------------------------------------------------------
# List
# -------------------------------------------------------------------

@router.get("/transactions", response_class=HTMLResponse)
def transactions_page(
    request: Request,
    store: TransactionStore = Depends(get_store),
    main_currency: str = Depends(get_main_currency),
):
    return templates.TemplateResponse(
        request,
        "transactions.html",
        {
            "transactions": newest_first(store.list()),
            "main_currency": main_currency,
        },
    )


@router.get("/api/transactions")
def transactions_data(store: TransactionStore = Depends(get_store)):
    return [tx.model_dump(by_alias=True) for tx in store.list()]


# -------------------------------------------------------------------
# Form
# -------------------------------------------------------------------

@router.get("/transactions/new", response_class=HTMLResponse)
def new_transaction_page(
    request: Request,
    form: TransactionForm = Depends(get_form),
    config: SpendingConfig = Depends(get_config),
):
    form.open_for_create()
    return render_form(request, form, config)


@router.get("/transactions/{transaction_id}/edit", response_class=HTMLResponse)
def edit_transaction_page(
    transaction_id: str,
    request: Request,
    form: TransactionForm = Depends(get_form),
    config: SpendingConfig = Depends(get_config),
):
    form.open_for_edit(_find_or_404(form.store, transaction_id))
    return render_form(request, form, config)


@router.post("/transactions/save")
def save_transaction(
    request: Request,
    date: str = Form(""),
    name: str = Form(""),
    price: str = Form(""),
    currency: str = Form(""),
    category: str = Form(""),
    payment_method: str = Form(""),
    edit_id: str = Form(""),
    form: TransactionForm = Depends(get_form),
    config: SpendingConfig = Depends(get_config),
):
    if edit_id:
        form.open_for_edit(_find_or_404(form.store, edit_id))
    else:
        form.open_for_create()

    form.set_fields(
        date=date,
        name=name,
        price=price,
        currency=currency,
        category=category,
        payment_method=payment_method,
    )

    try:
        form.submit()
    except FormValidationError:
        # form stays open with the message shown inline
        return render_form(request, form, config, status_code=400)
    except TransactionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        logger.error("[save] ERROR writing transaction: %r", e)
        return render_error(request, "Error while saving transaction", e)

    return RedirectResponse(url="/transactions", status_code=303)


@router.post("/transactions/cancel")
def cancel_transaction(form: TransactionForm = Depends(get_form)):
    form.cancel()
    return RedirectResponse(url="/transactions", status_code=303)


# -------------------------------------------------------------------
# Delete
# -------------------------------------------------------------------

@router.post("/transactions/{transaction_id}/delete")
def delete_transaction(
    transaction_id: str,
    request: Request,
    store: TransactionStore = Depends(get_store),
):
    try:
        store.remove(transaction_id)
    except PersistenceError as e:
        logger.error("[delete] ERROR deleting %s: %r", transaction_id, e)
        return render_error(request, "Error while deleting transaction", e)

    return RedirectResponse(url="/transactions", status_code=303)
