"""
Profit Kernel - shared infrastructure for the project financial model.

Provides:
- Structured JSON logging with request-scoped context
- A typed, code-carrying exception hierarchy
- SQLAlchemy declarative base, column types, and engine/session management
- An injectable clock so engines and services never read wall time directly
"""

__version__ = "0.1.0"
