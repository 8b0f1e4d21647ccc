import json
from decimal import Decimal
from uuid import uuid4

from flask import Flask, jsonify, redirect, render_template, request, session, url_for

from loan_quote.config import ASSET_VERSION, SCHEDULE_PREVIEW_ROWS, SECRET_KEY
from loan_quote.data_models import InterestRateBasis, LoanQuoteRequest, TermUnit
from loan_quote.engine import compute_schedule
from loan_quote.formatter import format_currency
from loan_quote_web.comparison_store import create_store_from_env

app = Flask(__name__)
app.config["ASSET_VERSION"] = ASSET_VERSION
app.secret_key = SECRET_KEY
comparison_store = create_store_from_env(None)

REQUEST_FIELDS = ("price", "down_payment", "term_count", "term_unit", "interest_rate", "interest_rate_basis")


@app.template_filter("currency")
def _currency_filter(value) -> str:
    return format_currency(Decimal(str(value)))


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _request_from_mapping(data) -> LoanQuoteRequest:
    """Build an engine request from form or JSON fields, leaving validation to the engine."""

    def text(name: str, default: str = "") -> str:
        value = data.get(name, default)
        return default if value is None else str(value).strip()

    return LoanQuoteRequest(
        price=text("price"),
        down_payment=text("down_payment") or "0",
        term_count=text("term_count"),
        interest_rate=text("interest_rate").rstrip("%"),
        term_unit=text("term_unit", TermUnit.MONTHS.value).lower(),
        interest_rate_basis=text("interest_rate_basis", InterestRateBasis.YEARLY.value).lower(),
    )


def _serialize_request(quote_request: LoanQuoteRequest) -> dict:
    return {name: str(getattr(quote_request, name)) for name in REQUEST_FIELDS}


def _serialize_schedule(schedule):
    """Convert schedule entries into JSON-serialisable dictionaries for charts and the API."""
    serialized = []
    for entry in schedule:
        serialized.append(
            {
                "period": entry.period,
                "payment": str(entry.payment_amount),
                "principal": str(entry.principal_portion),
                "interest": str(entry.interest_portion),
                "balance": str(entry.remaining_balance),
            }
        )
    return serialized


def _schedule_for_view(result, show_full_schedule: bool):
    if show_full_schedule:
        return result.schedule, 0
    preview = result.schedule[:SCHEDULE_PREVIEW_ROWS]
    return preview, len(result.schedule) - len(preview)


def _handle_save_action(user_token: str, form, quote_request: LoanQuoteRequest, result) -> None:
    quote_name = form.get("scenario_name", "").strip() or "Quote"
    comparison_store.add_quote(
        user_token,
        uuid4().hex,
        quote_name,
        _serialize_request(quote_request),
        result.summary(),
        _serialize_schedule(result.schedule),
    )


@app.route("/", methods=["GET", "POST"])
def index():
    result = None
    schedule = None
    truncated = 0
    error = None
    error_field = None
    show_full_schedule = False
    action = "run"
    form_values = {}

    user_token = _ensure_user_token()

    if request.method == "POST":
        action = request.form.get("action", "run")
        show_full_schedule = request.form.get("show_full_schedule") == "1"
        form_values = {name: request.form.get(name, "") for name in REQUEST_FIELDS}
        quote_request = _request_from_mapping(request.form)
        outcome = compute_schedule(quote_request)
        if outcome:
            result = outcome.value
            schedule, truncated = _schedule_for_view(result, show_full_schedule)
            if action == "add_to_comparison":
                _handle_save_action(user_token, request.form, quote_request, result)
        else:
            error = outcome.error.message
            error_field = outcome.error.field

    saved_quotes = comparison_store.list_quotes(user_token)
    current_schedule_payload = json.dumps(_serialize_schedule(result.schedule)) if result else "null"

    return render_template(
        "index.html",
        result=result,
        schedule=schedule,
        truncated=truncated,
        show_full_schedule=show_full_schedule,
        error=error,
        error_field=error_field,
        form_values=form_values,
        term_units=[unit.value for unit in TermUnit],
        rate_bases=[basis.value for basis in InterestRateBasis],
        asset_version=app.config["ASSET_VERSION"],
        saved_quotes=saved_quotes,
        comparison_payload=json.dumps(saved_quotes),
        current_schedule_payload=current_schedule_payload,
        last_action=action,
    )


@app.post("/api/quote")
def api_quote():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": {"kind": "BadRequest", "field": None, "message": "Expected a JSON object"}}), 400
    outcome = compute_schedule(_request_from_mapping(payload))
    if not outcome:
        app.logger.info("Quote rejected: %s", outcome.error.message)
        return jsonify({"error": outcome.error.to_dict()}), 400
    result = outcome.value
    body = result.summary()
    body["monthly_rate"] = str(result.monthly_rate)
    body["schedule"] = _serialize_schedule(result.schedule)
    return jsonify(body)


@app.post("/comparison/remove")
def remove_comparison():
    quote_id = request.form.get("quote_id")
    user_token = session.get("user_token")
    comparison_store.remove_quote(user_token, quote_id)
    return redirect(url_for("index"))


@app.post("/comparison/clear")
def clear_comparisons():
    user_token = session.get("user_token")
    comparison_store.clear_quotes(user_token)
    return redirect(url_for("index"))


if __name__ == "__main__":
    print("Starting loan quotation web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
