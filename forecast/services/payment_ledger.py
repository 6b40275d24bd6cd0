# forecast/services/payment_ledger.py
# Actual (cash) accounting: expands payment schedules into dated cash events
# and buckets them into months. Pure logic, like financial_engine.

from dataclasses import dataclass
from datetime import MAXYEAR, date

from forecast.models import PENDING, PaymentInstance, as_service
from forecast.services.financial_engine import allocate_revenue
from forecast.utils.date_utils import add_months, parse_date

# Occurrences generated for a recurring payment that has no count.
MAX_RECURRENCE_INSTANCES = 60

# Recurring payments are never expanded past Dec 31 of reference year + this.
DEFAULT_HORIZON_YEARS = 5


@dataclass(frozen=True)
class CashRevenue:
    """Cash revenue of one service for one month."""
    received: float = 0.0
    pending: float = 0.0

    def to_dict(self):
        return {'received': self.received, 'pending': self.pending}


def default_horizon(reference_year):
    """Dec 31 of reference_year + DEFAULT_HORIZON_YEARS, clamped to date.max."""
    if reference_year + DEFAULT_HORIZON_YEARS > MAXYEAR:
        return date.max
    return date(reference_year + DEFAULT_HORIZON_YEARS, 12, 31)


def payment_amount(payment, total):
    """Percentage of the service total when a percentage is set, else the fixed amount."""
    if payment.percentage is not None:
        return total * payment.percentage / 100
    return payment.amount or 0.0


def expand_recurring_payments(payment, total, horizon_date=None, reference_year=None):
    """
    Expands a payment into its dated occurrences.

    A non-recurring payment yields itself. A recurring one yields an
    occurrence every 1, 3 or 12 months from its due date, `count` times
    (MAX_RECURRENCE_INSTANCES when unset), stopping at the horizon.

    Only the first occurrence carries the payment's status and paid date;
    the following ones are always pending.

    Args:
        payment: Payment
        total: service total used for percentage-based amounts
        horizon_date: last date an occurrence may fall on; defaults to
            Dec 31 of (reference_year + DEFAULT_HORIZON_YEARS)
        reference_year: defaults to the year of the payment's due date

    Returns:
        list of PaymentInstance
    """
    amount = payment_amount(payment, total)
    recurrence = payment.recurrence

    if recurrence is None:
        return [PaymentInstance(
            key=(payment.id, 0),
            payment=payment,
            due_date=payment.due_date,
            paid_date=payment.paid_date,
            status=payment.status,
            amount=amount,
        )]

    if payment.due_date is None:
        return []

    horizon = parse_date(horizon_date)
    if horizon is None:
        horizon = default_horizon(reference_year or payment.due_date.year)

    instances = []
    for index in range(recurrence.count or MAX_RECURRENCE_INSTANCES):
        try:
            due_date = add_months(payment.due_date, index * recurrence.cycle_months)
        except (ValueError, OverflowError):
            # Past year 9999.
            break
        if due_date > horizon:
            break
        is_first = index == 0
        instances.append(PaymentInstance(
            key=(payment.id, index),
            payment=payment,
            due_date=due_date,
            paid_date=payment.paid_date if is_first else None,
            status=payment.status if is_first else PENDING,
            amount=amount,
        ))
    return instances


def iter_payment_instances(service, reference_year=None):
    """Yields every cash event of a service's payment schedule."""
    service = as_service(service)
    total = service.total
    for payment in service.payments:
        yield from expand_recurring_payments(payment, total, reference_year=reference_year)


def _in_month(day, year, month):
    return day is not None and day.year == year and day.month - 1 == month


def actual_revenue_for_month(service, year, month, reference_year=None):
    """
    Cash revenue of a service for a month, split into received and pending.

    Each occurrence lands in the month of its paid date once received, of
    its due date otherwise. A service without a payment schedule falls back
    to its distributed revenue, reported as received.

    `reference_year` should be the current year: recurring payments are
    expanded up to Dec 31 of reference_year + DEFAULT_HORIZON_YEARS. When it
    is None each payment uses its own due-date year instead, so an unbounded
    payment due years ago stops earlier than it would from today.

    Returns:
        CashRevenue
    """
    service = as_service(service)

    if not service.payments:
        return CashRevenue(received=allocate_revenue(service, year, month), pending=0.0)

    received = 0.0
    pending = 0.0
    for instance in iter_payment_instances(service, reference_year):
        if not _in_month(instance.relevant_date, year, month):
            continue
        if instance.is_received:
            received += instance.amount
        else:
            pending += instance.amount

    return CashRevenue(received=received, pending=pending)


def pending_revenue_for_month(service, year, month, reference_year=None):
    """
    Amount still expected in a month from payments marked pending,
    bucketed by due date. 0.0 for services without a payment schedule.
    `reference_year` works as in actual_revenue_for_month.
    """
    service = as_service(service)
    total = service.total
    pending = 0.0
    for payment in service.payments:
        if payment.is_received:
            continue
        for instance in expand_recurring_payments(payment, total, reference_year=reference_year):
            if _in_month(instance.due_date, year, month):
                pending += instance.amount
    return pending


def payment_schedule_summary(service):
    """
    How much of the service total the schedule covers (occurrences not expanded).

    Returns:
        dict with keys: serviceTotal, plannedTotal, plannedPercentage, remaining
    """
    service = as_service(service)
    total = service.total
    planned = sum(payment_amount(payment, total) for payment in service.payments)
    return {
        'serviceTotal': total,
        'plannedTotal': planned,
        'plannedPercentage': (planned / total * 100) if total > 0 else 0.0,
        'remaining': total - planned,
    }
