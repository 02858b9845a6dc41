"""Repository Search Cache: GitHub search results mirrored into a local SQL store.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
