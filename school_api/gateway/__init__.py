"""Gateway - path/verb router in front of default, reader and writer instances.

Invariants:
    - Write verbs never reach the reader pool; GET never reaches the writer pool
    - The route table is validated against the service-type policy at startup
"""
