"""
Penalty Engine - infraction tracking and graduated sanctions

Tracks infractions committed by users of a shared-resource booking
platform, accumulates them into a risk score, and enforces graduated
sanctions (warnings, suspensions, reservation restrictions) that gate
future reservation-related actions.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
