"""
Service layer.

- financial_engine.py: social charges rates, fixed costs, distributed revenue
- payment_ledger.py: payment schedules and actual (cash) revenue
- aggregation.py: month / quarter / year / multi-year aggregates
- projections.py: request validation and orchestration for the HTTP API
"""
