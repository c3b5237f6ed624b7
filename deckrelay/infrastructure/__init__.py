"""Infrastructure Layer — logging, database access, and the tool-call audit sink.

Invariants:
    - Infrastructure never decides tool semantics; it only records and transports

Design Decisions:
    - Singletons (db_manager) initialized in the FastAPI lifespan, never at import time
"""
