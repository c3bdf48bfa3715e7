"""Core Layer — pure request pipeline logic, no HTTP, no logging handlers.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/ or schemas/
    - The only clock reads are time.monotonic (deadlines) and time.time (result stamps)

Design Decisions:
    - Functional core separated from imperative shell: the FastAPI routes and the
      uvicorn supervisor orchestrate IO around these types
"""
