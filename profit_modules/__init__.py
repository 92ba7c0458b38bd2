"""
Profit Modules.

Thin orchestration layers over the profit kernel and engines.
Each module contains:
- Domain models (the nouns)
- ORM persistence models
- A service facade that owns transaction boundaries

Modules:
- Project: clients, users, projects, team, time logs, expenses, deliverables
- Reporting: variance, profitability, billable hours, cost breakdown,
  alerts, and the portfolio dashboard

Actual financial arithmetic lives in ``profit_engines``.
"""
