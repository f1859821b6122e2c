"""Blueprint with the scheduling API."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...services import scheduling_service

bp = Blueprint("scheduling", __name__)


def _range_args():
    start = scheduling_service.parse_date(request.args.get("start"), "start")
    end = scheduling_service.parse_date(request.args.get("end"), "end")
    return start, end


@bp.post("/api/schedule/run")
def run_schedule():
    payload = request.get_json(silent=True) or {}
    try:
        start = scheduling_service.parse_date(payload.get("start"), "start")
        end = scheduling_service.parse_date(payload.get("end"), "end")
        result = scheduling_service.run(start, end, commit=bool(payload.get("commit")))
    except scheduling_service.InvalidRequestError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(result.as_dict()), 200


@bp.get("/api/schedule/candidates")
def list_candidates():
    try:
        day = scheduling_service.parse_date(request.args.get("date"))
        shift = scheduling_service.parse_shift(request.args.get("shift"))
    except scheduling_service.InvalidRequestError as exc:
        return jsonify({"error": str(exc)}), 400
    candidates = scheduling_service.list_candidates(day, shift)
    return jsonify(
        {
            "date": day.isoformat(),
            "shift": shift.value,
            "candidates": [scheduling_service.employee_view(employee) for employee in candidates],
        }
    )


@bp.put("/api/schedule/<date_str>/<shift_key>")
def reassign_shift(date_str: str, shift_key: str):
    payload = request.get_json(silent=True) or {}
    employee_id = payload.get("employee_id")
    if not employee_id:
        return jsonify({"error": "employee_id is required"}), 400
    try:
        day = scheduling_service.parse_date(date_str)
        shift = scheduling_service.parse_shift(shift_key)
        result = scheduling_service.reassign(day, shift, str(employee_id))
    except scheduling_service.InvalidRequestError as exc:
        return jsonify({"error": str(exc)}), 400
    except scheduling_service.EmployeeNotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    return jsonify(result)


@bp.get("/api/schedules")
def list_schedules():
    try:
        start, end = _range_args()
        result = scheduling_service.list_schedules(start, end)
    except scheduling_service.InvalidRequestError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(result)


@bp.delete("/api/schedules")
def delete_schedules():
    try:
        start, end = _range_args()
        result = scheduling_service.delete_schedules(start, end)
    except scheduling_service.InvalidRequestError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(result)


@bp.get("/api/stats")
def stats():
    return jsonify({"employees": scheduling_service.historical_stats()})
