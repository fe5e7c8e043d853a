"""Infrastructure Layer - database access, temporal versioning and logging.

Invariants:
    - Repositories return Result values; only session managers raise
    - History rows are written by the temporal session hook alone

Design Decisions:
    - Command and query repositories live in separate modules and may use
      separate session managers (different connection strings)
"""
