"""API Layer - FastAPI routes, dependencies, middleware and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All error responses share one JSON envelope ({"error": {...}})

Design Decisions:
    - Thin routes: unwrap service Results, raise typed errors, nothing else
"""
