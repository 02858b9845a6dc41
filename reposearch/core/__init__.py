"""Core Layer: pure paging logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic

Design Decisions:
    - Page-key resolution lives here; the mediator in services/ wraps it with IO
"""
