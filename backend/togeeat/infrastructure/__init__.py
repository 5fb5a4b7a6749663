"""Infrastructure Layer — database, auth, logging and the SQL Storage Gateway.

Invariants:
    - SQLAlchemy failures are mapped to core errors before leaving this layer
"""
