"""Core Layer — matching rules, query building and pagination, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Rule functions are pure and deterministic; `now` is always passed in

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
