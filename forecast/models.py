# models.py

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

from forecast.utils.date_utils import parse_date
from forecast.utils.math_utils import to_float, to_int

# This file defines the records the calculation engine reads.
# Simulations are persisted by the UI as JSON; every record here is built from
# one of those dicts with `from_dict`, which never raises: a missing or
# malformed field falls back to its documented default.

# --- Billing / recurrence frequencies ---

ONE_SHOT = 'oneshot'
MONTHLY = 'monthly'
QUARTERLY = 'quarterly'
ANNUAL = 'annual'

# The UI stores French tokens ('mois', 'trimestre', 'annee'); payment
# recurrences use the English ones ('monthly', 'quarterly', 'yearly').
FREQUENCY_ALIASES = {
    'oneshot': ONE_SHOT,
    'one-shot': ONE_SHOT,
    'one_shot': ONE_SHOT,
    'mois': MONTHLY,
    'monthly': MONTHLY,
    'trimestre': QUARTERLY,
    'quarterly': QUARTERLY,
    'annee': ANNUAL,
    'année': ANNUAL,
    'annual': ANNUAL,
    'yearly': ANNUAL,
}

RECURRENCE_CYCLE_MONTHS = {
    MONTHLY: 1,
    QUARTERLY: 3,
    ANNUAL: 12,
}

# --- Payment status ---

PENDING = 'pending'
RECEIVED = 'received'

# Social charges rate applied when nothing else is configured, and the rate
# every service falls back to once a reduced-charges period has ended.
DEFAULT_SOCIAL_CHARGE_RATE = 25.0


def normalize_frequency(value):
    """Returns the canonical frequency for a persisted token, or None if unknown."""
    if not isinstance(value, str):
        return None
    return FREQUENCY_ALIASES.get(value.strip().lower())


def _as_dict(value):
    return value if isinstance(value, dict) else {}


def _as_list(value):
    return value if isinstance(value, (list, tuple)) else []


def _pick(data, *keys):
    """First non-None value among `keys` (camelCase as persisted, snake_case for Python callers)."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


# --- 1. CUSTOM FIXED COST ---

@dataclass(frozen=True)
class CustomFixedCost:
    """
    A user-defined cost attached to a service. Its activation window is
    independent from the service's: the start date defaults to the service
    start (resolved by the engine), the end date defaults to "never".
    """
    id: object = None
    name: str = ''
    amount: float = 0.0
    frequency: Optional[str] = MONTHLY
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_dict(cls, data):
        data = _as_dict(data)
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            amount=to_float(data.get('amount')),
            frequency=normalize_frequency(data.get('frequency')),
            start_date=parse_date(_pick(data, 'startDate', 'start_date')),
            end_date=parse_date(_pick(data, 'endDate', 'end_date')),
        )


# --- 2. SERVICE PARAMETERS ---

@dataclass(frozen=True)
class ServiceParams:
    """
    Per-service settings. Defaults:

    - social_charges_rate: 25 (%)
    - reduced_charges_rate: 25 (%), only used when reduced_charges_end_date is set
    - reduced_charges_end_date: None (no reduced-charges regime)
    - reduced_charges_requested: False; True when an end date was given,
      even one that does not parse
    - hosting_cost, database_cost: 0 per month
    - domain_price: 0 per domain per year, domain_count: 0
    - custom_fixed_costs: none
    """
    social_charges_rate: float = DEFAULT_SOCIAL_CHARGE_RATE
    reduced_charges_rate: float = DEFAULT_SOCIAL_CHARGE_RATE
    reduced_charges_end_date: Optional[date] = None
    reduced_charges_requested: bool = False
    hosting_cost: float = 0.0
    database_cost: float = 0.0
    domain_price: float = 0.0
    domain_count: float = 0.0
    custom_fixed_costs: Tuple[CustomFixedCost, ...] = ()

    @property
    def has_reduced_charges(self):
        return self.reduced_charges_requested or self.reduced_charges_end_date is not None

    @classmethod
    def from_dict(cls, data):
        data = _as_dict(data)
        raw_end_date = _pick(data, 'reducedChargesEndDate', 'reduced_charges_end_date')
        return cls(
            social_charges_rate=to_float(
                _pick(data, 'socialChargesRate', 'social_charges_rate'), DEFAULT_SOCIAL_CHARGE_RATE),
            reduced_charges_rate=to_float(
                _pick(data, 'reducedChargesRate', 'reduced_charges_rate'), DEFAULT_SOCIAL_CHARGE_RATE),
            reduced_charges_end_date=parse_date(raw_end_date),
            reduced_charges_requested=bool(raw_end_date),
            hosting_cost=to_float(_pick(data, 'hostingCost', 'hosting_cost')),
            database_cost=to_float(_pick(data, 'databaseCost', 'database_cost')),
            domain_price=to_float(_pick(data, 'domainPrice', 'domain_price')),
            domain_count=to_float(_pick(data, 'domainCount', 'domain_count')),
            custom_fixed_costs=tuple(
                CustomFixedCost.from_dict(item)
                for item in _as_list(_pick(data, 'customFixedCosts', 'custom_fixed_costs'))
            ),
        )


# --- 3. PAYMENTS ---

@dataclass(frozen=True)
class Recurrence:
    frequency: str = MONTHLY
    count: Optional[int] = None  # None means "until the horizon"

    @property
    def cycle_months(self):
        return RECURRENCE_CYCLE_MONTHS[self.frequency]

    @classmethod
    def from_dict(cls, data):
        """Returns None unless the recurrence is present and enabled."""
        data = _as_dict(data)
        if not data.get('enabled'):
            return None
        # Unknown or one-shot frequencies repeat monthly.
        frequency = normalize_frequency(data.get('frequency'))
        if frequency not in RECURRENCE_CYCLE_MONTHS:
            frequency = MONTHLY
        count = to_int(data.get('count'), 0)
        return cls(frequency=frequency, count=count if count > 0 else None)


@dataclass(frozen=True)
class Payment:
    """
    One entry of a service's payment schedule (deposit, milestone, balance).

    The amount is either a percentage of the service total or a fixed amount;
    when a percentage is present it wins.
    """
    id: object = None
    type: str = 'deposit'
    percentage: Optional[float] = None
    amount: Optional[float] = None
    due_date: Optional[date] = None
    paid_date: Optional[date] = None
    status: str = PENDING
    recurrence: Optional[Recurrence] = None
    notes: str = ''

    @property
    def is_received(self):
        return self.status == RECEIVED

    @classmethod
    def from_dict(cls, data):
        data = _as_dict(data)
        status = data.get('status')
        return cls(
            id=data.get('id'),
            type=data.get('type') or 'deposit',
            percentage=to_float(data.get('percentage'), None),
            amount=to_float(data.get('amount'), None),
            due_date=parse_date(_pick(data, 'dueDate', 'due_date')),
            paid_date=parse_date(_pick(data, 'paidDate', 'paid_date')),
            status=RECEIVED if isinstance(status, str) and status.lower() == RECEIVED else PENDING,
            recurrence=Recurrence.from_dict(data.get('recurrence')),
            notes=data.get('notes') or '',
        )


@dataclass(frozen=True)
class PaymentInstance:
    """
    A single dated cash event produced by expanding a Payment.

    `key` is (payment id, occurrence index); non-recurring payments expand
    to one instance with index 0.
    """
    key: tuple
    payment: Payment
    due_date: Optional[date]
    paid_date: Optional[date]
    status: str
    amount: float

    @property
    def is_received(self):
        return self.status == RECEIVED

    @property
    def relevant_date(self):
        """Date used to bucket the cash event: paid date once received, due date otherwise."""
        if self.is_received and self.paid_date is not None:
            return self.paid_date
        return self.due_date

    def to_dict(self):
        return {
            'paymentId': self.key[0],
            'occurrence': self.key[1],
            'type': self.payment.type,
            'dueDate': self.due_date.isoformat() if self.due_date else None,
            'paidDate': self.paid_date.isoformat() if self.paid_date else None,
            'status': self.status,
            'amount': self.amount,
        }


# --- 4. SERVICE ---

@dataclass(frozen=True)
class Service:
    """A billable line item of a simulation. `total` is derived, never stored."""
    id: object = None
    name: str = ''
    price: float = 0.0
    quantity: int = 0
    frequency: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    params: ServiceParams = field(default_factory=ServiceParams)
    payments: Tuple[Payment, ...] = ()

    @property
    def total(self):
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data):
        data = _as_dict(data)
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            price=to_float(data.get('price')),
            quantity=to_int(data.get('quantity')),
            frequency=normalize_frequency(data.get('frequency')),
            start_date=parse_date(_pick(data, 'startDate', 'start_date')),
            end_date=parse_date(_pick(data, 'endDate', 'end_date')),
            params=ServiceParams.from_dict(data.get('params')),
            payments=tuple(Payment.from_dict(item) for item in _as_list(data.get('payments'))),
        )


# --- 5. SIMULATION ---

@dataclass(frozen=True)
class Simulation:
    """A named set of services. Test simulations are left out of dashboard aggregates."""
    id: object = None
    name: str = ''
    is_test: bool = False
    services: Tuple[Service, ...] = ()

    @classmethod
    def from_dict(cls, data):
        data = _as_dict(data)
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            is_test=bool(_pick(data, 'isTest', 'is_test')),
            services=tuple(Service.from_dict(item) for item in _as_list(data.get('services'))),
        )


def as_service(value):
    """Accepts either a Service or its persisted dict form."""
    if isinstance(value, Service):
        return value
    return Service.from_dict(value)


def as_simulation(value):
    """Accepts either a Simulation or its persisted dict form."""
    if isinstance(value, Simulation):
        return value
    return Simulation.from_dict(value)
