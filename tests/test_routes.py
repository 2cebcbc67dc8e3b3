from datetime import date

import pytest

LUNCH = {"date": "2024-01-01", "name": "Lunch", "price": "10", "currency": "EUR", "category": "Food"}


def _save(client, **overrides):
    data = {**LUNCH, **overrides}
    return client.post("/transactions/save", data=data, follow_redirects=False)


def _transactions(client):
    return client.get("/api/transactions").json()


def test_root_redirects_to_dashboard(client):
    response = client.get("/", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/dashboard"


def test_empty_dashboard(client):
    response = client.get("/dashboard")
    assert response.status_code == 200
    assert "No transactions yet" in response.text

    data = client.get("/api/dashboard").json()
    assert data["total"] == 0
    assert data["average"] == 0
    assert data["byDate"] == []


def test_add_transaction_updates_dashboard(client):
    response = _save(client)
    assert response.status_code == 303
    assert response.headers["location"] == "/transactions"

    data = client.get("/api/dashboard").json()
    assert data["count"] == 1
    assert f"{data['total']:.2f}" == "10.00"
    assert f"{data['average']:.2f}" == "10.00"
    assert data["byDate"] == [{"date": "2024-01-01", "amount": 10.0}]

    page = client.get("/dashboard").text
    assert "10.00 EUR" in page


def test_new_form_is_prefilled(client):
    response = client.get("/transactions/new")
    assert response.status_code == 200
    assert date.today().isoformat() in response.text
    assert "New Transaction" in response.text


def test_validation_error_rerenders_form(client):
    response = _save(client, price="")

    assert response.status_code == 400
    assert "Please fill in name and price" in response.text
    assert _transactions(client) == []


def test_edit_flow(client):
    _save(client)
    [tx] = _transactions(client)

    form = client.get(f"/transactions/{tx['id']}/edit")
    assert form.status_code == 200
    assert "Edit Transaction" in form.text
    assert 'value="Lunch"' in form.text

    response = _save(client, edit_id=tx["id"], name="Dinner", price="100", currency="USD")
    assert response.status_code == 303

    [updated] = _transactions(client)
    assert updated["id"] == tx["id"]
    assert updated["createdAt"] == tx["createdAt"]
    assert updated["name"] == "Dinner"
    assert round(updated["priceInMain"], 2) == 90.91


def test_edit_unknown_transaction(client):
    assert client.get("/transactions/nope/edit").status_code == 404
    assert _save(client, edit_id="nope").status_code == 404


def test_cancel(client):
    response = client.post("/transactions/cancel", follow_redirects=False)
    assert response.status_code == 303
    assert _transactions(client) == []


def test_delete_removes_only_that_transaction(client):
    _save(client, name="Lunch")
    _save(client, name="Taxi")
    lunch, taxi = _transactions(client)

    response = client.post(f"/transactions/{lunch['id']}/delete", follow_redirects=False)

    assert response.status_code == 303
    assert [tx["id"] for tx in _transactions(client)] == [taxi["id"]]


def test_transactions_page_lists_newest_first(client):
    _save(client, date="2024-01-01", name="Older")
    _save(client, date="2024-02-01", name="Newer")

    page = client.get("/transactions").text
    assert page.index("Newer") < page.index("Older")


def test_main_currency_change_does_not_recompute_existing(client):
    _save(client, price="10", currency="EUR")

    response = client.post("/settings/main-currency", data={"currency": "USD"}, follow_redirects=False)
    assert response.status_code == 303

    _save(client, name="Snack", price="10", currency="EUR")
    lunch, snack = _transactions(client)

    assert lunch["priceInMain"] == pytest.approx(10)
    assert snack["priceInMain"] == pytest.approx(11)
    assert client.get("/api/dashboard").json()["mainCurrency"] == "USD"


def test_unknown_main_currency_rejected(client):
    response = client.post("/settings/main-currency", data={"currency": "CHF"})
    assert response.status_code == 400
    assert "Unknown currency" in response.text


def test_export_download(client):
    _save(client)

    response = client.get("/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    expected = f'attachment; filename="expenses-{date.today().isoformat()}.csv"'
    assert response.headers["content-disposition"] == expected
    lines = response.text.splitlines()
    assert lines[0] == "Date,Name,Price,Currency,Price in Main,Main Currency,Category,Payment Method"
    assert lines[1] == "2024-01-01,Lunch,10,EUR,10.00,EUR,Food,"


def test_import_upload(client):
    csv_text = (
        "Date,Name,Price,Currency\n"
        "2024-01-01,Lunch,10,EUR\n"
        "2024-01-02,Taxi,,EUR\n"
    )

    response = client.post("/import", files={"csv_file": ("expenses.csv", csv_text.encode("utf-8"), "text/csv")})

    assert response.status_code == 200
    assert "Imported 1 transactions" in response.text
    assert [tx["name"] for tx in _transactions(client)] == ["Lunch"]


def test_import_with_bad_price_in_main_keeps_dashboard_valid(client):
    csv_text = (
        "Date,Name,Price,Currency,Price in Main,Main Currency\n"
        "2024-01-01,Lunch,10,EUR,inf,EUR\n"
        "2024-01-02,Taxi,5,EUR,-50,EUR\n"
    )

    client.post("/import", files={"csv_file": ("expenses.csv", csv_text.encode("utf-8"), "text/csv")})

    response = client.get("/api/dashboard")
    assert response.status_code == 200
    assert response.json()["total"] == 15


def test_import_unreadable_csv(client):
    bad = b'Date,Name,Price\n2024-01-01,"oops,3\n'

    response = client.post("/import", files={"csv_file": ("bad.csv", bad, "text/csv")})

    assert response.status_code == 400
    assert _transactions(client) == []


def test_persistence_failure_shows_error_page(client, monkeypatch):
    _save(client)

    def boom(data):
        raise OSError("disk full")

    monkeypatch.setattr(client.app.state.local_store, "_write", boom)

    response = _save(client, name="Taxi")
    assert response.status_code == 500
    assert "Error while saving transaction" in response.text

    [tx] = _transactions(client)
    response = client.post(f"/transactions/{tx['id']}/delete")
    assert response.status_code == 500
    assert len(_transactions(client)) == 1


def test_static_css_is_served(client):
    assert client.get("/static/style.css").status_code == 200
