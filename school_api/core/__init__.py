"""Core Layer - domain types, entities, results, errors and pure policies.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - No IO; repository contracts are Protocols implemented by infrastructure/
"""
