"""Pydantic Schemas: GitHub payloads and API request/response validation.

Invariants:
    - Schemas validate at system boundaries (GitHub responses, user input)

Design Decisions:
    - Separate from models: schemas are wire contracts, models are persistence
"""
