"""
Smoke tests to verify all critical dependencies are installed correctly.

These tests confirm that:
1. Python 3.11+ is installed (required for asyncio.timeout and TaskGroup)
2. All core dependencies are importable
3. Project version is accessible

Run with: pytest tests/unit/test_smoke.py -v
"""

import sys


class TestPythonVersion:
    """Verify Python version requirements."""

    def test_python_311_or_higher(self) -> None:
        assert sys.version_info >= (3, 11), (
            f"Python 3.11+ required, got {sys.version_info.major}.{sys.version_info.minor}"
        )

    def test_zoneinfo_has_utc(self) -> None:
        """Quota days need IANA zones (tzdata on minimal systems)."""
        from zoneinfo import ZoneInfo

        assert ZoneInfo("UTC") is not None


class TestSanctionLedgerStorage:
    """Verify database dependencies for the PostgreSQL sanction ledger."""

    def test_sqlalchemy_async(self) -> None:
        """SQLAlchemy 2.0+ async mode must be available."""
        from sqlalchemy import __version__ as sa_version
        from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

        major_version = int(sa_version.split(".")[0])
        assert major_version >= 2, f"SQLAlchemy 2.0+ required, got {sa_version}"
        assert AsyncSession is not None
        assert create_async_engine is not None

    def test_asyncpg_import(self) -> None:
        import asyncpg

        assert asyncpg.connect is not None

    def test_dotenv_import(self) -> None:
        from dotenv import load_dotenv

        assert load_dotenv is not None


class TestStructuredLogging:
    def test_structlog_configuration(self) -> None:
        """structlog can be bound with context."""
        import structlog

        logger = structlog.get_logger()
        bound_logger = logger.bind(service="PenaltyEngineService", operation="test")
        assert bound_logger is not None


class TestPropertyBasedTesting:
    def test_hypothesis_import(self) -> None:
        from hypothesis import given, strategies

        assert given is not None
        assert strategies is not None


class TestProjectVersion:
    """Verify project metadata is accessible."""

    def test_version_format(self) -> None:
        """Version must be in semver format."""
        from penalty_engine import __version__

        parts = __version__.split(".")
        assert len(parts) >= 2, f"Version must be semver format, got {__version__}"
