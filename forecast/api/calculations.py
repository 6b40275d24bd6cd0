# forecast/api/calculations.py
# (This file is for all calculation routes. Every route is stateless: the
# request body carries the full simulation data, nothing is stored.)

from flask import Blueprint, request, jsonify
from forecast.utils import _handle_service_result

from forecast.services.projections import (
    calculate_social_charges_rate,
    calculate_service_revenue,
    calculate_fixed_costs,
    calculate_actual_revenue,
    calculate_payment_schedule,
    calculate_period_report,
    calculate_projection,
    calculate_simulation_summary,
    calculate_net_breakdown,
)

bp = Blueprint('calculations', __name__)


def _run_calculation(calculator):
    """Reads the JSON body, hands it to the calculator and formats the result."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return jsonify({"success": False, "error": "No data provided in the request", "error_code": 400}), 400
    return _handle_service_result(calculator(data))


@bp.route('/health', methods=['GET'])
def health_route():
    return jsonify({"success": True, "status": "ok"}), 200


# --- SERVICE-LEVEL ROUTES ---

@bp.route('/calculations/social-charges-rate', methods=['POST'])
def social_charges_rate_route():
    """
    Returns the social charges rate of a service on a date.
    Body: {"service": {...}, "date": "YYYY-MM-DD"}
    """
    return _run_calculation(calculate_social_charges_rate)


@bp.route('/calculations/service-revenue', methods=['POST'])
def service_revenue_route():
    """
    Returns the distributed revenue of a service for a month, or a whole year
    when 'month' (0-11) is omitted.
    Body: {"service": {...}, "year": 2025, "month": 2}
    """
    return _run_calculation(calculate_service_revenue)


@bp.route('/calculations/fixed-costs', methods=['POST'])
def fixed_costs_route():
    return _run_calculation(calculate_fixed_costs)


@bp.route('/calculations/actual-revenue', methods=['POST'])
def actual_revenue_route():
    """
    Returns received and pending cash for a service in a month.
    Body: {"service": {...}, "year": 2025, "month": 0, "current_year": 2025}
    """
    return _run_calculation(calculate_actual_revenue)


@bp.route('/calculations/payment-schedule', methods=['POST'])
def payment_schedule_route():
    return _run_calculation(calculate_payment_schedule)


# --- SIMULATION-LEVEL ROUTES ---

@bp.route('/calculations/periods', methods=['POST'])
def periods_route():
    """
    Returns dashboard records for a year.
    Body: {"simulations": [...], "year": 2025,
           "granularity": "month" | "quarter" | "year",
           "mode": "distributed" | "actual"}
    Test simulations are left out.
    """
    return _run_calculation(calculate_period_report)


@bp.route('/calculations/projection', methods=['POST'])
def projection_route():
    """
    Returns the multi-year projection, one record per year from the
    configured start year.
    Body: {"simulations": [...], "current_year": 2025, "years_to_project": 5}
    """
    return _run_calculation(calculate_projection)


@bp.route('/calculations/simulation-summary', methods=['POST'])
def simulation_summary_route():
    return _run_calculation(calculate_simulation_summary)


@bp.route('/calculations/net-breakdown', methods=['POST'])
def net_breakdown_route():
    """
    Returns the net result of each simulation side by side.
    Body: same as /calculations/periods
    """
    return _run_calculation(calculate_net_breakdown)
