# forecast/services/financial_engine.py
# Distributed-mode calculation engine: social charges, fixed costs, revenue.
# This module is a pure logic library: no Flask, no logging, no clock.
# Every function accepts a Service or its persisted dict form and never raises.

import math
from dataclasses import dataclass

from forecast.models import (
    ANNUAL,
    DEFAULT_SOCIAL_CHARGE_RATE,
    MONTHLY,
    ONE_SHOT,
    QUARTERLY,
    as_service,
)
from forecast.utils.date_utils import (
    inclusive_days,
    month_end,
    month_number,
    month_number_of,
    month_start,
    overlap_days,
    parse_date,
    year_end,
    year_start,
)
from forecast.utils.math_utils import prorate

# Divides a recurring billing amount into its monthly share.
MONTHS_PER_BILLING_CYCLE = {
    MONTHLY: 1,
    QUARTERLY: 3,
    ANNUAL: 12,
}


def is_active_in_month(start_date, end_date, year, month):
    """
    True if [start_date, end_date] touches the target month. Either bound may
    be None (unbounded). Being active for any day counts for the whole month.
    """
    target = month_number(year, month)
    if start_date is not None and target < month_number_of(start_date):
        return False
    if end_date is not None and target > month_number_of(end_date):
        return False
    return True


def service_total(service):
    """price x quantity, recomputed on every call."""
    return as_service(service).total


# --- 1. SocialChargesRateResolver ---

def resolve_social_charges_rate(service, target_date):
    """
    Returns the social charges percentage for a service on a given date.

    Without a reduced-charges regime, the service's own rate applies.
    With one, the reduced rate applies up to and including its end date;
    afterwards DEFAULT_SOCIAL_CHARGE_RATE applies, not the service's rate.
    An end date that was given but does not parse never matches, so
    DEFAULT_SOCIAL_CHARGE_RATE applies on every date.
    """
    params = as_service(service).params

    if not params.has_reduced_charges:
        return params.social_charges_rate

    end_date = params.reduced_charges_end_date
    target_date = parse_date(target_date)
    if end_date is not None and target_date is not None and target_date <= end_date:
        return params.reduced_charges_rate

    return DEFAULT_SOCIAL_CHARGE_RATE


# --- 2. FixedCostEvaluator ---

@dataclass(frozen=True)
class FixedCosts:
    """Fixed costs of one service for one month."""
    hosting: float = 0.0
    database: float = 0.0
    domains: float = 0.0
    custom_recurring: float = 0.0
    custom_one_shot: float = 0.0

    @property
    def fixed(self):
        return self.hosting + self.database + self.domains + self.custom_recurring

    @property
    def one_shot(self):
        return self.custom_one_shot

    def to_dict(self):
        return {
            'hosting': self.hosting,
            'database': self.database,
            'domains': self.domains,
            'customRecurring': self.custom_recurring,
            'customOneShot': self.custom_one_shot,
            'fixed': self.fixed,
            'oneShot': self.one_shot,
        }


def _custom_cost_charge(cost, service_start, year, month):
    """
    Charge of one custom fixed cost for the target month.

    Returns:
        (recurring_amount, one_shot_amount)
    """
    start = cost.start_date or service_start
    if not is_active_in_month(start, cost.end_date, year, month):
        return 0.0, 0.0

    amount = cost.amount

    if cost.frequency == MONTHLY:
        return amount, 0.0

    if cost.frequency == QUARTERLY:
        # Cycle counted from the effective start, across year boundaries.
        # Without any start date the cycle is aligned on January.
        offset = month_number(year, month) - month_number_of(start) if start else month
        return (amount, 0.0) if offset % 3 == 0 else (0.0, 0.0)

    if cost.frequency == ANNUAL:
        billing_month = start.month - 1 if start else 0
        return (amount, 0.0) if month == billing_month else (0.0, 0.0)

    if cost.frequency == ONE_SHOT:
        if start is None:
            return 0.0, 0.0
        if cost.end_date is None:
            if start.year == year and start.month - 1 == month:
                return 0.0, amount
            return 0.0, 0.0
        if cost.end_date < start:
            return 0.0, 0.0
        shared = overlap_days(start, cost.end_date, month_start(year, month), month_end(year, month))
        return 0.0, prorate(amount, shared, inclusive_days(start, cost.end_date))

    return 0.0, 0.0


def evaluate_fixed_costs(service, year, month):
    """
    Computes the fixed costs a service carries in a given month.

    Hosting, database and domains (domain price x count, spread over 12 months)
    follow the service's own active window. Each custom cost follows its own
    window and recurrence (see _custom_cost_charge).

    Returns:
        FixedCosts
    """
    service = as_service(service)
    params = service.params

    hosting = database = domains = 0.0
    if is_active_in_month(service.start_date, service.end_date, year, month):
        hosting = params.hosting_cost
        database = params.database_cost
        domains = (params.domain_price * params.domain_count) / 12

    custom_recurring = 0.0
    custom_one_shot = 0.0
    for cost in params.custom_fixed_costs:
        recurring, one_shot = _custom_cost_charge(cost, service.start_date, year, month)
        custom_recurring += recurring
        custom_one_shot += one_shot

    return FixedCosts(
        hosting=hosting,
        database=database,
        domains=domains,
        custom_recurring=custom_recurring,
        custom_one_shot=custom_one_shot,
    )


# --- 3. RevenueAllocator ---

def _one_shot_revenue(service, total, year, month):
    start, end = service.start_date, service.end_date
    if start is None or end is None or end < start:
        return 0.0

    if month is not None:
        bucket_start, bucket_end = month_start(year, month), month_end(year, month)
    else:
        bucket_start, bucket_end = year_start(year), year_end(year)

    shared = overlap_days(start, end, bucket_start, bucket_end)
    return prorate(total, shared, inclusive_days(start, end))


def _recurring_month_revenue(service, total, year, month):
    if not is_active_in_month(service.start_date, service.end_date, year, month):
        return 0.0
    # Smoothed over every active month, whatever the billing month is.
    return total / MONTHS_PER_BILLING_CYCLE[service.frequency]


def _recurring_year_revenue(service, total, year):
    start, end = service.start_date, service.end_date
    if end is not None and end < year_start(year):
        return 0.0
    if start is not None and start > year_end(year):
        return 0.0

    effective_start = max(start, year_start(year)) if start else year_start(year)
    effective_end = min(end, year_end(year)) if end else year_end(year)
    if effective_start > effective_end:
        return 0.0

    months_active = effective_end.month - effective_start.month + 1

    if service.frequency == MONTHLY:
        return total * months_active
    if service.frequency == QUARTERLY:
        return total * math.ceil(months_active / 3)
    return total * (months_active / 12)


def allocate_revenue(service, year, month=None):
    """
    Revenue recognized for a service in distributed mode.

    - One-shot: total pro-rated by days between start and end dates
      (both required) over the target month, or the calendar year when
      `month` is None.
    - Monthly / quarterly / annual with a month: total, total/3 or total/12
      for every month the service is active.
    - Monthly / quarterly / annual for a whole year: total x active months,
      total x started quarters, or total x active months / 12.

    Returns:
        float (0.0 for inactive services, missing dates or unknown frequencies)
    """
    service = as_service(service)
    total = service.total

    if service.frequency == ONE_SHOT:
        return _one_shot_revenue(service, total, year, month)

    if service.frequency not in MONTHS_PER_BILLING_CYCLE:
        return 0.0

    if month is not None:
        return _recurring_month_revenue(service, total, year, month)
    return _recurring_year_revenue(service, total, year)
