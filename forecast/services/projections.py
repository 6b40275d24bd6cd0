# forecast/services/projections.py
# Stateless calculators behind the HTTP API. Each function receives the
# decoded JSON body, validates its shape, runs the engine and returns either
# {"success": True, "data": ...} or ({"success": False, "error": ...}, status).

from datetime import MAXYEAR, date
from functools import wraps

from flask import current_app

from forecast.models import Service, Simulation
from forecast.services.aggregation import (
    CALCULATION_MODES,
    GRANULARITIES,
    aggregate_period,
    aggregate_projection,
    net_breakdown,
    simulation_summary,
)
from forecast.services.financial_engine import (
    allocate_revenue,
    evaluate_fixed_costs,
    resolve_social_charges_rate,
)
from forecast.services.payment_ledger import (
    actual_revenue_for_month,
    iter_payment_instances,
    payment_schedule_summary,
)
from forecast.utils.date_utils import parse_date
from forecast.utils.general import convert_to_json_safe


class RequestValidationError(ValueError):
    """Raised when a request body does not have the expected shape."""
    pass


def stateless_calculation(description):
    """
    Wraps a calculator so that validation problems become 400 responses and
    anything unexpected becomes a logged 500, like the other service functions.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(request_data):
            try:
                data = func(request_data)
            except RequestValidationError as e:
                current_app.logger.warning("Rejected %s request: %s", description, str(e))
                return {"success": False, "error": str(e)}, 400
            except Exception as e:
                current_app.logger.error("Unexpected error during %s: %s", description, str(e), exc_info=True)
                return {"success": False, "error": f"An unexpected error occurred during {description}: {str(e)}"}, 500
            return {"success": True, "data": convert_to_json_safe(data)}
        return wrapper
    return decorator


# --- Request field helpers ---

def _integer(request_data, key, minimum, maximum, required=True, default=None):
    value = request_data.get(key)
    if value is None:
        if required:
            raise RequestValidationError(f"Missing '{key}'.")
        return default
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int):
        raise RequestValidationError(f"'{key}' must be an integer.")
    if not minimum <= value <= maximum:
        raise RequestValidationError(f"'{key}' must be between {minimum} and {maximum}.")
    return value


def _year(request_data, key='year', required=True, default=None):
    return _integer(request_data, key, 1900, 9999, required, default)


def _month(request_data, required=True):
    return _integer(request_data, 'month', 0, 11, required)


def _current_year(request_data):
    # The only place a clock is read: the engine always gets an explicit year.
    return _year(request_data, 'current_year', required=False, default=date.today().year)


def _choice(request_data, key, allowed, default):
    value = request_data.get(key) or default
    if value not in allowed:
        raise RequestValidationError(f"'{key}' must be one of {list(allowed)}.")
    return value


def _service(request_data):
    data = request_data.get('service')
    if not isinstance(data, dict):
        raise RequestValidationError("Missing or invalid 'service' object.")
    return Service.from_dict(data)


def _simulation(request_data):
    data = request_data.get('simulation')
    if not isinstance(data, dict):
        raise RequestValidationError("Missing or invalid 'simulation' object.")
    return Simulation.from_dict(data)


def _simulations(request_data):
    data = request_data.get('simulations')
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise RequestValidationError("Missing or invalid 'simulations' list of objects.")
    return [Simulation.from_dict(item) for item in data]


def _mode(request_data):
    return _choice(request_data, 'mode', CALCULATION_MODES, current_app.config['DEFAULT_CALCULATION_MODE'])


def _granularity(request_data):
    return _choice(request_data, 'granularity', GRANULARITIES, 'month')


# --- Service-level calculators ---

@stateless_calculation("social charges rate lookup")
def calculate_social_charges_rate(request_data):
    service = _service(request_data)
    target_date = parse_date(request_data.get('date'))
    if target_date is None:
        raise RequestValidationError("Missing or invalid 'date' (expected YYYY-MM-DD).")
    return {"date": target_date.isoformat(), "rate": resolve_social_charges_rate(service, target_date)}


@stateless_calculation("service revenue calculation")
def calculate_service_revenue(request_data):
    service = _service(request_data)
    year = _year(request_data)
    month = _month(request_data, required=False)
    return {
        "year": year,
        "month": month,
        "total": service.total,
        "revenue": allocate_revenue(service, year, month),
    }


@stateless_calculation("fixed cost calculation")
def calculate_fixed_costs(request_data):
    service = _service(request_data)
    year = _year(request_data)
    month = _month(request_data)
    return {"year": year, "month": month, **evaluate_fixed_costs(service, year, month).to_dict()}


@stateless_calculation("actual revenue calculation")
def calculate_actual_revenue(request_data):
    service = _service(request_data)
    year = _year(request_data)
    month = _month(request_data)
    cash = actual_revenue_for_month(service, year, month, _current_year(request_data))
    return {"year": year, "month": month, **cash.to_dict()}


@stateless_calculation("payment schedule expansion")
def calculate_payment_schedule(request_data):
    service = _service(request_data)
    instances = list(iter_payment_instances(service, _current_year(request_data)))
    instances.sort(key=lambda instance: (instance.due_date is None, instance.due_date or date.min))
    return {
        "instances": [instance.to_dict() for instance in instances],
        "summary": payment_schedule_summary(service),
    }


# --- Simulation-level calculators ---

@stateless_calculation("period report")
def calculate_period_report(request_data):
    simulations = _simulations(request_data)
    year = _year(request_data)
    granularity = _granularity(request_data)
    mode = _mode(request_data)
    current_app.logger.info(
        "Period report: %d simulation(s), year=%s, granularity=%s, mode=%s",
        len(simulations), year, granularity, mode,
    )
    records = aggregate_period(simulations, year, granularity, mode, _current_year(request_data))
    return [record.to_dict() for record in records]


@stateless_calculation("multi-year projection")
def calculate_projection(request_data):
    simulations = _simulations(request_data)
    current_year = _current_year(request_data)
    years_to_project = _integer(
        request_data, 'years_to_project', 1, 50,
        required=False, default=current_app.config['YEARS_TO_PROJECT'],
    )
    start_year = current_app.config['PROJECTION_START_YEAR']
    current_app.logger.info(
        "Projection: %d simulation(s), %s..%s",
        len(simulations), start_year, min(current_year + years_to_project - 1, MAXYEAR),
    )
    records = aggregate_projection(simulations, current_year, years_to_project, start_year)
    return [record.to_dict() for record in records]


@stateless_calculation("simulation summary")
def calculate_simulation_summary(request_data):
    simulation = _simulation(request_data)
    year = _year(request_data)
    return {"id": simulation.id, "name": simulation.name, "year": year, **simulation_summary(simulation, year)}


@stateless_calculation("net breakdown")
def calculate_net_breakdown(request_data):
    simulations = _simulations(request_data)
    year = _year(request_data)
    return net_breakdown(
        simulations, year, _granularity(request_data), _mode(request_data), _current_year(request_data),
    )
