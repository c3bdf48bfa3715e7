"""Services Layer — executor, request pipeline, and shutdown supervision.

Invariants:
    - Services orchestrate core types; HTTP parsing stays in api/
    - The executor has no knowledge of networking or logging handlers
"""
