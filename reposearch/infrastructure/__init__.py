"""Infrastructure Layer: database sessions, GitHub client, logging.

Invariants:
    - All external calls wrapped with retry/timeout/error mapping
"""
