"""Core Layer — pure logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Check-then-mutate sequences never suspend (no await) so they are atomic on the event loop

Design Decisions:
    - Functional core separated from imperative shell (ADR: ExMA impureim sandwich)
"""
