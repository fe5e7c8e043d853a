"""ORM Models - SQLAlchemy declarative models for the temporal school tables.

Invariants:
    - All models inherit from Base (db/base.py)
    - schools holds current rows; school_history is append-only

Design Decisions:
    - All models imported here so Base.metadata is complete before
      create_all or alembic autogenerate runs
"""

from school_api.models.school import SchoolRecord, SchoolHistoryRecord  # noqa: F401
