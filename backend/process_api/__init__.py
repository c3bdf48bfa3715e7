"""Process API Package — liveness probe and a single deadline-bound unit-of-work endpoint.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
