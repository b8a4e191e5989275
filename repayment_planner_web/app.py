import logging
import os

import click
from flask import Flask, Response, jsonify, request

from repayment_planner.engine import ScheduleEngine
from repayment_planner.exceptions import RepaymentPlannerError
from repayment_planner.formatter import render_schedule_csv, serialize_installments
from repayment_planner.main import build_config_from_options

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_ROWS"] = int(os.environ.get("REPAYMENT_PLANNER_MAX_ROWS", "600"))


def parse_form_list(value) -> list[str]:
    """Parse a comma or newline separated list of entries, or pass a list through.

    Returns a list of trimmed strings, skipping any empty entries.
    """
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(p).strip() for p in value if str(p).strip()]
    parts = [p.strip() for p in str(value).replace("\n", ",").split(",")]
    return [p for p in parts if p]


def _as_flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _payload_to_engine(payload: dict) -> ScheduleEngine:
    config = build_config_from_options(
        str(payload.get("amount", "")),
        str(payload.get("rate", "")),
        str(payload.get("start", "")),
        str(payload.get("end", "")),
        period=str(payload.get("period", "monthly")),
        style=str(payload.get("style", "annuity")),
        first_repayment=payload.get("first_repayment") or None,
        daily=_as_flag(payload.get("daily", False)),
        decimals=int(payload.get("decimals", 2)),
        payment=tuple(parse_form_list(payload.get("payments"))),
        rate_change=tuple(parse_form_list(payload.get("rate_changes"))),
    )
    engine = ScheduleEngine.from_config(config)
    engine.calc()
    return engine


def _bad_request(exc: Exception):
    message = exc.format_message() if isinstance(exc, click.ClickException) else str(exc)
    logger.info("Rejected schedule request: %s", message)
    return jsonify({"error": message}), 400


@app.get("/health")
def health():
    return jsonify({"status": "ok"})


@app.post("/api/schedule")
def schedule():
    payload = request.get_json(silent=True) or request.form.to_dict()
    try:
        engine = _payload_to_engine(payload)
    except (click.ClickException, RepaymentPlannerError, ValueError) as exc:
        return _bad_request(exc)

    rows = serialize_installments(engine)
    max_rows = app.config["MAX_ROWS"]
    body = {"summary": engine.summary(), "installments": rows[:max_rows]}
    if len(rows) > max_rows:
        body["truncated"] = len(rows) - max_rows
    return jsonify(body)


@app.post("/api/schedule.csv")
def schedule_csv():
    payload = request.get_json(silent=True) or request.form.to_dict()
    try:
        engine = _payload_to_engine(payload)
    except (click.ClickException, RepaymentPlannerError, ValueError) as exc:
        return _bad_request(exc)

    return Response(
        render_schedule_csv(engine),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=schedule.csv"},
    )


if __name__ == "__main__":
    print("Starting Repayment Planner web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
