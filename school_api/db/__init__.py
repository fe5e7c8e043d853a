"""Database package - declarative base and ORM-facing helpers.

Invariants:
    - One async engine per connection string (see infrastructure/database.py)
    - All sessions are async (AsyncSession)
"""
