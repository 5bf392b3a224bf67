"""Production adapters for application ports."""

from penalty_engine.infrastructure.adapters.time_authority import SystemTimeAuthority

__all__: list[str] = ["SystemTimeAuthority"]
