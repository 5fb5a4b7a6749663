"""Services Layer — lifecycle engine and membership manager.

Invariants:
    - Services talk to storage only through the MatchingRepository protocol
    - Caller identity is always an explicit parameter
"""
