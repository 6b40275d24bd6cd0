# forecast/services/aggregation.py
# Aggregates the per-service engine results over simulations and periods.
# Pure logic: callers pass the reference year explicitly, nothing reads a clock.
# `reference_year` anchors the horizon of recurring payments in actual mode
# (see payment_ledger.actual_revenue_for_month); pass the current year.

from dataclasses import dataclass
from datetime import MAXYEAR
from typing import Optional

from forecast.models import as_service, as_simulation
from forecast.services.financial_engine import (
    allocate_revenue,
    evaluate_fixed_costs,
    resolve_social_charges_rate,
)
from forecast.services.payment_ledger import actual_revenue_for_month
from forecast.utils.date_utils import month_start

# First year of every multi-year projection.
START_YEAR = 2025
YEARS_TO_PROJECT = 5

DISTRIBUTED = 'distributed'
ACTUAL = 'actual'
CALCULATION_MODES = (DISTRIBUTED, ACTUAL)

GRANULARITIES = ('month', 'quarter', 'year')

MONTH_LABELS = ('Jan', 'Fév', 'Mar', 'Avr', 'Mai', 'Jun', 'Jul', 'Aoû', 'Sep', 'Oct', 'Nov', 'Déc')

QUARTERS = (
    ('T1', (0, 1, 2)),
    ('T2', (3, 4, 5)),
    ('T3', (6, 7, 8)),
    ('T4', (9, 10, 11)),
)


@dataclass(frozen=True)
class PeriodTotals:
    """Financial result of a period. Net is always derived."""
    period: str
    revenue: float = 0.0
    pending_revenue: float = 0.0
    charges: float = 0.0
    fixed: float = 0.0
    one_shot: float = 0.0
    month_index: Optional[int] = None
    year: Optional[int] = None

    @property
    def net(self):
        return self.revenue - self.charges - self.fixed - self.one_shot

    def to_dict(self):
        data = {'period': self.period}
        if self.month_index is not None:
            data['month'] = self.period
            data['monthIndex'] = self.month_index
        if self.year is not None:
            data['year'] = self.year
        data.update({
            'Revenue': self.revenue,
            'PendingRevenue': self.pending_revenue,
            'Charges': self.charges,
            'Fixed': self.fixed,
            'OneShot': self.one_shot,
            'Net': self.net,
        })
        return data


def _sum_totals(period, records, **labels):
    revenue = pending = charges = fixed = one_shot = 0.0
    for record in records:
        revenue += record.revenue
        pending += record.pending_revenue
        charges += record.charges
        fixed += record.fixed
        one_shot += record.one_shot
    return PeriodTotals(period, revenue, pending, charges, fixed, one_shot, **labels)


def active_simulations(simulations):
    """Parses simulations and drops the ones flagged as tests."""
    parsed = (as_simulation(sim) for sim in (simulations or []))
    return [sim for sim in parsed if not sim.is_test]


def _services_of(simulations):
    return [service for sim in simulations for service in sim.services]


# --- 1. Service-level month ---

def service_month_totals(service, year, month, mode=DISTRIBUTED, reference_year=None):
    """
    One service, one month.

    In actual mode the revenue is the cash received in the month and social
    charges are computed on it alone: pending cash is not charged until it
    is received. `reference_year` is the current year; left as None, the
    horizon of recurring payments follows each due date
    (see actual_revenue_for_month).
    """
    service = as_service(service)

    if mode == ACTUAL:
        cash = actual_revenue_for_month(service, year, month, reference_year)
        revenue, pending = cash.received, cash.pending
    else:
        revenue, pending = allocate_revenue(service, year, month), 0.0

    rate = resolve_social_charges_rate(service, month_start(year, month))
    costs = evaluate_fixed_costs(service, year, month)

    return PeriodTotals(
        period=MONTH_LABELS[month],
        revenue=revenue,
        pending_revenue=pending,
        charges=revenue * (rate / 100),
        fixed=costs.fixed,
        one_shot=costs.one_shot,
        month_index=month,
    )


def _month_totals(services, year, month, mode, reference_year):
    return _sum_totals(
        MONTH_LABELS[month],
        (service_month_totals(service, year, month, mode, reference_year) for service in services),
        month_index=month,
    )


def _year_totals(services, year, mode, reference_year, /, **labels):
    months = [_month_totals(services, year, month, mode, reference_year) for month in range(12)]
    totals = _sum_totals(str(year), months, **labels)
    if mode == ACTUAL:
        return totals
    # Distributed revenue is allocated over the whole year directly; charges
    # and costs stay month by month to honour rate changes and start dates.
    revenue = sum(allocate_revenue(service, year) for service in services)
    return PeriodTotals(
        totals.period, revenue, totals.pending_revenue, totals.charges,
        totals.fixed, totals.one_shot, totals.month_index, totals.year,
    )


# --- 2. Month / quarter / year over simulations ---

def aggregate_month(simulations, year, month, mode=DISTRIBUTED, reference_year=None):
    services = _services_of(active_simulations(simulations))
    return _month_totals(services, year, month, mode, reference_year)


def aggregate_monthly(simulations, year, mode=DISTRIBUTED, reference_year=None):
    """Twelve month records for the year; empty when no simulation is active."""
    active = active_simulations(simulations)
    if not active:
        return []
    services = _services_of(active)
    return [_month_totals(services, year, month, mode, reference_year) for month in range(12)]


def aggregate_quarter(simulations, year, quarter, mode=DISTRIBUTED, reference_year=None):
    """Sum of the three months of quarter 1-4. Any other quarter is an empty record."""
    if quarter not in (1, 2, 3, 4):
        return PeriodTotals(f"T{quarter}")
    name, months = QUARTERS[quarter - 1]
    services = _services_of(active_simulations(simulations))
    return _sum_totals(name, (_month_totals(services, year, month, mode, reference_year) for month in months))


def aggregate_quarterly(simulations, year, mode=DISTRIBUTED, reference_year=None):
    """T1..T4 records; zero records when no simulation is active."""
    monthly = aggregate_monthly(simulations, year, mode, reference_year)
    if not monthly:
        return [PeriodTotals(name) for name, _ in QUARTERS]
    return [_sum_totals(name, (monthly[month] for month in months)) for name, months in QUARTERS]


def aggregate_yearly(simulations, year, mode=DISTRIBUTED, reference_year=None):
    """
    Single-record list for the year.

    Distributed mode allocates revenue over the whole year; actual mode
    sums the twelve months of cash.
    """
    active = active_simulations(simulations)
    if not active:
        return [PeriodTotals(str(year))]
    return [_year_totals(_services_of(active), year, mode, reference_year)]


def aggregate_period(simulations, year, granularity='month', mode=DISTRIBUTED, reference_year=None):
    if granularity == 'quarter':
        return aggregate_quarterly(simulations, year, mode, reference_year)
    if granularity == 'year':
        return aggregate_yearly(simulations, year, mode, reference_year)
    return aggregate_monthly(simulations, year, mode, reference_year)


# --- 3. Multi-year projection ---

def projection_years(current_year, years_to_project=YEARS_TO_PROJECT, start_year=START_YEAR):
    """
    Years from start_year up to current_year + years_to_project (exclusive).
    Never goes past year 9999, the last year a date can hold.
    """
    return list(range(start_year, min(current_year + years_to_project, MAXYEAR + 1)))


def simulation_totals(simulation, current_year, years_to_project=YEARS_TO_PROJECT, start_year=START_YEAR):
    """Distributed projection of one simulation, one record per year. The test flag is ignored."""
    services = list(as_simulation(simulation).services)
    return [
        _year_totals(services, year, DISTRIBUTED, current_year, year=year)
        for year in projection_years(current_year, years_to_project, start_year)
    ]


def aggregate_projection(simulations, current_year, years_to_project=YEARS_TO_PROJECT, start_year=START_YEAR):
    """Dashboard projection: simulation_totals summed over active simulations."""
    active = active_simulations(simulations)
    if not active:
        return []
    per_simulation = [simulation_totals(sim, current_year, years_to_project, start_year) for sim in active]
    return [
        _sum_totals(str(year), (rows[index] for rows in per_simulation), year=year)
        for index, year in enumerate(projection_years(current_year, years_to_project, start_year))
    ]


# --- 4. Simulation views ---

def simulation_summary(simulation, year):
    """
    Figures shown on a simulation tab for one year.

    Returns:
        dict with keys: monthly (annual figures / 12), annual, chartData
        (one row per month; 'Charges' there is social charges + fixed costs)
    """
    services = list(as_simulation(simulation).services)
    months = [_month_totals(services, year, month, DISTRIBUTED, year) for month in range(12)]
    annual = _sum_totals(str(year), months)

    def _figures(totals, divisor=1):
        return {
            'revenue': totals.revenue / divisor,
            'charges': totals.charges / divisor,
            'fixed': totals.fixed / divisor,
            'oneShot': totals.one_shot / divisor,
            'net': totals.net / divisor,
        }

    return {
        'monthly': _figures(annual, 12),
        'annual': _figures(annual),
        'chartData': [
            {
                'name': row.period,
                'Revenu': row.revenue,
                'Net': row.net,
                'Charges': row.charges + row.fixed,
                'OneShot': row.one_shot,
            }
            for row in months
        ],
    }


def net_breakdown(simulations, year, granularity='month', mode=DISTRIBUTED, reference_year=None):
    """
    Net result of each active simulation side by side, one row per period.

    Returns:
        list of dicts: {'label': ..., '<simulation id>': net, ...}
    """
    if granularity == 'quarter':
        rows = [{'label': name} for name, _ in QUARTERS]
    elif granularity == 'year':
        rows = [{'label': str(year)}]
    else:
        rows = [{'label': label, 'monthIndex': index} for index, label in enumerate(MONTH_LABELS)]

    for sim in active_simulations(simulations):
        for row, totals in zip(rows, aggregate_period([sim], year, granularity, mode, reference_year)):
            row[str(sim.id)] = totals.net
    return rows
