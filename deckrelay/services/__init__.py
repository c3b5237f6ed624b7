"""Services — the relay pipeline (dedup, coalesce, serialize, dispatch) and the deck engine.

Invariants:
    - Services never import from api/ (routes depend on services, not the reverse)
    - Every engine operation passes through the serial queue

Design Decisions:
    - One module per component, composed in relay_runtime.py (ADR: ExMA one concern per file)
"""
