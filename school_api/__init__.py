"""School Registry API - temporal CRUD service with reader/writer routing.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

__version__ = "1.0.0"
