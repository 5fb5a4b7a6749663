"""togeeat — group matching service (QUICK and YOTEI sessions).

Invariants:
    - Package root holds only metadata (no import side-effects)
"""

__version__ = "1.0.0"
