"""Services Layer - the command/query facade over the school repositories.

Invariants:
    - The facade is the only component that sees both command and query sides
"""
