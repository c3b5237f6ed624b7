"""API Layer — FastAPI routes, the embed WebSocket, and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All REST endpoints return structured JSON responses

Design Decisions:
    - Thin routes delegate to the relay runtime on app.state
"""
