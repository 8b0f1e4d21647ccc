# tests/test_web.py
from datetime import datetime
from decimal import Decimal

from sqlalchemy.engine import make_url

from loan_quote.config import DATABASE_URL, SECRET_KEY
from loan_quote_web.comparison_store import ComparisonStore, SavedQuoteModel

FORM = {
    "price": "1,000,000",
    "down_payment": "200000",
    "term_count": "12",
    "term_unit": "months",
    "interest_rate": "12",
    "interest_rate_basis": "yearly",
}


def _user_token(client):
    with client.session_transaction() as sess:
        return sess["user_token"]


def test_index_renders_form(client):
    response = client.get("/")

    assert response.status_code == 200
    assert b"Loan Quotation" in response.data
    assert b'name="interest_rate_basis"' in response.data


def test_index_computes_quote(client):
    response = client.post("/", data=FORM)

    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "₱71,079.03" in body
    assert "₱800,000.00" in body
    assert "Payment Schedule" in body


def test_index_shows_inline_validation_message(client):
    response = client.post("/", data={**FORM, "term_count": "0"})

    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "term_count must be at least 1" in body
    assert 'data-field="term_count"' in body
    assert "Payment Schedule" not in body


def test_index_truncates_long_schedule_preview(client):
    response = client.post("/", data={**FORM, "term_count": "30", "term_unit": "years"})

    assert "240 more rows not shown." in response.get_data(as_text=True)


def test_save_remove_and_clear_comparisons(client, flask_app):
    from loan_quote_web.app import comparison_store

    client.post("/", data={**FORM, "action": "add_to_comparison", "scenario_name": "One year"})
    client.post("/", data={**FORM, "term_count": "24", "action": "add_to_comparison", "scenario_name": "Two years"})
    token = _user_token(client)

    saved = comparison_store.list_quotes(token)
    assert [quote["name"] for quote in saved] == ["One year", "Two years"]
    assert saved[0]["summary"]["monthly_payment"] == "71079.03"
    assert saved[0]["request"]["term_count"] == "12"
    assert "Saved Quotes" in client.get("/").get_data(as_text=True)

    response = client.post("/comparison/remove", data={"quote_id": saved[0]["id"]})
    assert response.status_code == 302
    assert [quote["name"] for quote in comparison_store.list_quotes(token)] == ["Two years"]

    client.post("/comparison/clear")
    assert comparison_store.list_quotes(token) == []


def test_api_quote_returns_schedule(client):
    response = client.post(
        "/api/quote",
        json={
            "price": 1000000,
            "down_payment": 200000,
            "term_count": 12,
            "interest_rate": 12,
            "term_unit": "months",
            "interest_rate_basis": "yearly",
        },
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data["loan_amount"] == "800000.00"
    assert data["monthly_payment"] == "71079.03"
    assert data["monthly_rate"] == "0.01"
    assert len(data["schedule"]) == 12
    assert data["schedule"][-1]["balance"] == "0.00"
    assert sum(Decimal(row["principal"]) for row in data["schedule"]) == Decimal("800000.00")


def test_api_quote_degenerate(client):
    response = client.post("/api/quote", json={"price": "100", "down_payment": "150", "term_count": 6, "interest_rate": 5})

    assert response.status_code == 200
    data = response.get_json()
    assert data["loan_amount"] == "0.00"
    assert data["schedule"] == []


def test_api_quote_rejects_negative_rate(client):
    response = client.post("/api/quote", json={"price": 1000, "term_count": 12, "interest_rate": -1})

    assert response.status_code == 400
    assert response.get_json()["error"] == {
        "kind": "InvalidRate",
        "field": "interest_rate",
        "message": "interest_rate must not be negative",
    }


def test_api_quote_requires_json_object(client):
    response = client.post("/api/quote", data="not json", content_type="text/plain")

    assert response.status_code == 400
    assert response.get_json()["error"]["kind"] == "BadRequest"


def test_store_trims_oldest_quotes(tmp_path):
    store = ComparisonStore(f"sqlite:///{tmp_path / 'store.sqlite3'}", max_per_user=2)
    for index in range(3):
        store.add_quote("user-a", f"id-{index}", f"Quote {index}", {}, {"index": index}, [])

    assert [quote["name"] for quote in store.list_quotes("user-a")] == ["Quote 1", "Quote 2"]


def test_store_scopes_quotes_per_user(tmp_path):
    store = ComparisonStore(f"sqlite:///{tmp_path / 'store.sqlite3'}")
    store.add_quote("user-a", "id-a", "A", {}, {}, [])
    store.add_quote("user-b", "id-b", "B", {}, {}, [])

    store.remove_quote("user-b", "id-a")
    store.clear_quotes("user-b")

    assert [quote["id"] for quote in store.list_quotes("user-a")] == ["id-a"]
    assert store.list_quotes("user-b") == []
    assert store.list_quotes("") == []


def test_store_orders_equal_seq_by_creation_time(tmp_path):
    store = ComparisonStore(f"sqlite:///{tmp_path / 'store.sqlite3'}")
    with store._session_factory() as session:
        for quote_id, created_at in (("late", datetime(2026, 1, 2)), ("early", datetime(2026, 1, 1))):
            session.add(
                SavedQuoteModel(
                    id=quote_id,
                    seq=1,
                    user_token="user-a",
                    name=quote_id,
                    request_json="{}",
                    summary_json="{}",
                    schedule_json="[]",
                    created_at=created_at,
                )
            )
        session.commit()

    assert [quote["id"] for quote in store.list_quotes("user-a")] == ["early", "late"]


def test_app_uses_configured_settings(flask_app):
    from loan_quote_web.app import comparison_store

    assert flask_app.secret_key == SECRET_KEY
    assert comparison_store._engine.url.database == make_url(DATABASE_URL).database


def test_api_quote_near_zero_rate(client):
    response = client.post(
        "/api/quote", json={"price": "1200", "down_payment": 0, "term_count": 12, "interest_rate": "1e-27"}
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data["monthly_payment"] == "100.00"
    assert data["schedule"][-1]["payment"] == "100.00"


def test_api_quote_rejects_unquotable_price(client):
    response = client.post("/api/quote", json={"price": "1e27", "term_count": 12, "interest_rate": 12})

    assert response.status_code == 400
    assert response.get_json()["error"]["kind"] == "InvalidPrincipal"
