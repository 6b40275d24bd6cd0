from datetime import date

from forecast.models import (
    ANNUAL,
    MONTHLY,
    ONE_SHOT,
    PENDING,
    QUARTERLY,
    RECEIVED,
    Payment,
    Service,
    ServiceParams,
    Simulation,
    normalize_frequency,
)


def test_frequency_tokens():
    assert normalize_frequency("mois") == MONTHLY
    assert normalize_frequency("trimestre") == QUARTERLY
    assert normalize_frequency("annee") == ANNUAL
    assert normalize_frequency("yearly") == ANNUAL
    assert normalize_frequency("oneshot") == ONE_SHOT
    assert normalize_frequency("weekly") is None
    assert normalize_frequency(None) is None


def test_service_defaults_on_malformed_fields():
    service = Service.from_dict({
        "price": "abc",
        "quantity": None,
        "frequency": "mois",
        "startDate": "garbage",
        "params": "not a dict",
        "payments": "nope",
    })
    assert service.price == 0.0
    assert service.quantity == 0
    assert service.total == 0.0
    assert service.start_date is None
    assert service.params == ServiceParams()
    assert service.payments == ()


def test_service_total_is_price_times_quantity():
    service = Service.from_dict({"price": "150.5", "quantity": "4", "frequency": "mois"})
    assert service.total == 602.0


def test_non_dict_record_is_empty_service():
    assert Service.from_dict(None) == Service()


def test_params_defaults():
    params = ServiceParams.from_dict({})
    assert params.social_charges_rate == 25.0
    assert params.reduced_charges_rate == 25.0
    assert params.has_reduced_charges is False
    assert params.hosting_cost == 0.0
    assert params.custom_fixed_costs == ()


def test_params_zero_rate_is_kept():
    assert ServiceParams.from_dict({"socialChargesRate": 0}).social_charges_rate == 0.0


def test_params_custom_costs_parsed():
    params = ServiceParams.from_dict({
        "customFixedCosts": [
            {"id": 7, "name": "Licence", "amount": "300", "frequency": "trimestre", "startDate": "2025-02-01"},
        ],
    })
    cost = params.custom_fixed_costs[0]
    assert cost.amount == 300.0
    assert cost.frequency == QUARTERLY
    assert cost.start_date == date(2025, 2, 1)
    assert cost.end_date is None


def test_payment_parsing():
    payment = Payment.from_dict({
        "id": 3,
        "type": "milestone",
        "percentage": 30,
        "amount": None,
        "dueDate": "2025-01-15",
        "status": "received",
        "paidDate": "2025-01-20",
        "recurrence": {"enabled": True, "frequency": "quarterly", "count": 4},
    })
    assert payment.percentage == 30.0
    assert payment.amount is None
    assert payment.status == RECEIVED
    assert payment.paid_date == date(2025, 1, 20)
    assert payment.recurrence.cycle_months == 3
    assert payment.recurrence.count == 4


def test_payment_recurrence_disabled_or_unbounded():
    disabled = Payment.from_dict({"recurrence": {"enabled": False, "frequency": "monthly"}})
    assert disabled.recurrence is None
    unbounded = Payment.from_dict({"recurrence": {"enabled": True, "frequency": "weird", "count": None}})
    assert unbounded.recurrence.frequency == MONTHLY
    assert unbounded.recurrence.count is None


def test_payment_unknown_status_is_pending():
    assert Payment.from_dict({"status": "late"}).status == PENDING


def test_simulation_accepts_snake_case():
    simulation = Simulation.from_dict({
        "id": "s1",
        "is_test": True,
        "services": [{"price": 10, "quantity": 2, "frequency": "mois", "start_date": "2025-01-01"}],
    })
    assert simulation.is_test is True
    assert simulation.services[0].start_date == date(2025, 1, 1)


def test_params_remember_unparseable_reduced_end_date():
    params = ServiceParams.from_dict({"reducedChargesEndDate": "not-a-date"})
    assert params.reduced_charges_end_date is None
    assert params.has_reduced_charges is True
    assert ServiceParams.from_dict({"reducedChargesEndDate": ""}).has_reduced_charges is False
