"""Composition root for wiring dependencies.

Centralizes infrastructure-aware wiring so the application layer depends
only on ports.
"""

from penalty_engine.bootstrap.penalty_engine import (
    PenaltyEngineContainer,
    build_penalty_engine,
)

__all__: list[str] = ["PenaltyEngineContainer", "build_penalty_engine"]
