from datetime import date

import pytest

from forecast.models import PENDING, RECEIVED, Payment
from forecast.services.payment_ledger import (
    MAX_RECURRENCE_INSTANCES,
    actual_revenue_for_month,
    default_horizon,
    expand_recurring_payments,
    payment_amount,
    payment_schedule_summary,
    pending_revenue_for_month,
)


def _payment(**data):
    return Payment.from_dict(data)


def test_percentage_wins_over_amount():
    assert payment_amount(_payment(percentage=30, amount=999), 2000) == pytest.approx(600)
    assert payment_amount(_payment(amount=450), 2000) == 450
    assert payment_amount(_payment(), 2000) == 0.0


def test_pending_percentage_payment_scenario(make_service):
    service = make_service(price=2000, payments=[
        {"id": 1, "percentage": 30, "dueDate": "2025-01-15", "status": "pending"},
    ])
    cash = actual_revenue_for_month(service, 2025, 0)
    assert cash.received == 0.0
    assert cash.pending == pytest.approx(600.0)
    assert cash.to_dict() == {"received": 0.0, "pending": pytest.approx(600.0)}


def test_received_payment_bucketed_by_paid_date(make_service):
    service = make_service(payments=[
        {"id": 1, "amount": 400, "dueDate": "2025-01-25", "status": "received", "paidDate": "2025-02-03"},
    ])
    assert actual_revenue_for_month(service, 2025, 0).received == 0.0
    february = actual_revenue_for_month(service, 2025, 1)
    assert february.received == 400.0
    assert february.pending == 0.0


def test_received_payment_without_paid_date_uses_due_date(make_service):
    service = make_service(payments=[{"id": 1, "amount": 400, "dueDate": "2025-01-25", "status": "received"}])
    assert actual_revenue_for_month(service, 2025, 0).received == 400.0


def test_recurring_monthly_payment_clamps_month_ends():
    payment = _payment(
        id=9, amount=100, dueDate="2025-01-31", status="received", paidDate="2025-02-02",
        recurrence={"enabled": True, "frequency": "monthly", "count": 3},
    )
    instances = expand_recurring_payments(payment, 1000)
    assert [instance.key for instance in instances] == [(9, 0), (9, 1), (9, 2)]
    assert [instance.due_date for instance in instances] == [
        date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31),
    ]
    assert instances[0].status == RECEIVED
    assert instances[0].paid_date == date(2025, 2, 2)
    assert all(instance.status == PENDING and instance.paid_date is None for instance in instances[1:])


def test_recurring_instances_bucketed_by_relevant_date(make_service):
    service = make_service(payments=[{
        "id": 9, "amount": 100, "dueDate": "2025-01-31", "status": "received", "paidDate": "2025-02-02",
        "recurrence": {"enabled": True, "frequency": "monthly", "count": 3},
    }])
    assert actual_revenue_for_month(service, 2025, 0).to_dict() == {"received": 0.0, "pending": 0.0}
    assert actual_revenue_for_month(service, 2025, 1).to_dict() == {"received": 100.0, "pending": 100.0}
    assert actual_revenue_for_month(service, 2025, 2).to_dict() == {"received": 0.0, "pending": 100.0}


def test_unbounded_recurrence_is_capped():
    payment = _payment(id=1, amount=50, dueDate="2025-01-15", recurrence={"enabled": True, "frequency": "monthly"})
    assert len(expand_recurring_payments(payment, 0)) == MAX_RECURRENCE_INSTANCES
    assert len(expand_recurring_payments(payment, 0, horizon_date=date(2025, 6, 30))) == 6


def test_quarterly_recurrence_with_count():
    payment = _payment(id=1, amount=50, dueDate="2025-01-15",
                       recurrence={"enabled": True, "frequency": "quarterly", "count": 4})
    due_dates = [instance.due_date for instance in expand_recurring_payments(payment, 0)]
    assert due_dates == [date(2025, 1, 15), date(2025, 4, 15), date(2025, 7, 15), date(2025, 10, 15)]


def test_yearly_recurrence_stops_at_default_horizon():
    payment = _payment(id=1, amount=50, dueDate="2025-03-01", recurrence={"enabled": True, "frequency": "yearly"})
    instances = expand_recurring_payments(payment, 0)
    assert len(instances) == 6
    assert instances[-1].due_date == date(2030, 3, 1)
    assert len(expand_recurring_payments(payment, 0, reference_year=2026)) == 7


def test_recurring_payment_without_due_date_expands_to_nothing():
    payment = _payment(id=1, amount=50, recurrence={"enabled": True, "frequency": "monthly", "count": 3})
    assert expand_recurring_payments(payment, 0) == []


def test_single_payment_expands_to_itself():
    payment = _payment(id=4, percentage=50, dueDate="2025-05-01")
    [instance] = expand_recurring_payments(payment, 3000)
    assert instance.key == (4, 0)
    assert instance.amount == pytest.approx(1500)
    assert instance.to_dict()["dueDate"] == "2025-05-01"


def test_no_payments_falls_back_to_distributed_revenue(make_service):
    service = make_service(startDate="2025-03-01")
    assert actual_revenue_for_month(service, 2025, 2).to_dict() == {"received": 1000.0, "pending": 0.0}
    assert actual_revenue_for_month(service, 2025, 1).received == 0.0


def test_pending_revenue_ignores_received_payments(make_service):
    service = make_service(payments=[
        {"id": 1, "amount": 300, "dueDate": "2025-04-10", "status": "pending"},
        {"id": 2, "amount": 200, "dueDate": "2025-04-20", "status": "received", "paidDate": "2025-04-21"},
    ])
    assert pending_revenue_for_month(service, 2025, 3) == 300.0
    assert pending_revenue_for_month(service, 2025, 4) == 0.0
    assert pending_revenue_for_month(make_service(), 2025, 3) == 0.0


def test_payment_schedule_summary(make_service):
    service = make_service(price=2000, payments=[
        {"id": 1, "percentage": 30, "dueDate": "2025-01-15"},
        {"id": 2, "amount": 500, "dueDate": "2025-03-15"},
    ])
    summary = payment_schedule_summary(service)
    assert summary["serviceTotal"] == 2000.0
    assert summary["plannedTotal"] == pytest.approx(1100.0)
    assert summary["plannedPercentage"] == pytest.approx(55.0)
    assert summary["remaining"] == pytest.approx(900.0)


def test_payment_schedule_summary_zero_total(make_service):
    summary = payment_schedule_summary(make_service(price=0, payments=[{"id": 1, "amount": 100}]))
    assert summary["plannedPercentage"] == 0.0
    assert summary["remaining"] == -100.0


def test_default_horizon_is_clamped_to_last_date():
    assert default_horizon(2025) == date(2030, 12, 31)
    assert default_horizon(9996) == date.max


def test_recurrence_stops_at_calendar_limit():
    payment = _payment(id=1, amount=50, dueDate="9999-01-15", recurrence={"enabled": True, "frequency": "monthly"})
    instances = expand_recurring_payments(payment, 0)
    assert len(instances) == 12
    assert instances[-1].due_date == date(9999, 12, 15)


def test_yearly_recurrence_near_calendar_limit_in_actual_revenue(make_service):
    service = make_service(payments=[{
        "id": 1, "amount": 80, "dueDate": "9998-06-01",
        "recurrence": {"enabled": True, "frequency": "yearly"},
    }])
    assert actual_revenue_for_month(service, 9999, 5, reference_year=9999).pending == 80.0


def test_reference_year_sets_horizon_of_old_payments(make_service):
    service = make_service(payments=[{
        "id": 1, "amount": 120, "dueDate": "2018-03-01", "status": "pending",
        "recurrence": {"enabled": True, "frequency": "yearly"},
    }])
    # Without a reference year the horizon follows the due date (end of 2023).
    assert actual_revenue_for_month(service, 2027, 2).pending == 0.0
    assert actual_revenue_for_month(service, 2027, 2, reference_year=2025).pending == 120.0
    assert pending_revenue_for_month(service, 2027, 2, reference_year=2025) == 120.0
