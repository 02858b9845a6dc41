"""Services Layer: stores, remote mediator, paging source, and pager.

Invariants:
    - Stores take an AsyncSession and never commit; the caller owns the transaction
    - Only the mediator writes to the stores
"""
