"""Unit tests for the database session factory bootstrap."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from penalty_engine.bootstrap import database
from penalty_engine.bootstrap.database import (
    DEFAULT_COMMAND_TIMEOUT_SECONDS,
    get_command_timeout,
    get_database_url,
    get_session_factory,
    mask_database_url,
    reset_database_bootstrap,
)


@pytest.fixture(autouse=True)
def clean_bootstrap() -> Iterator[None]:
    reset_database_bootstrap()
    yield
    reset_database_bootstrap()


class TestGetDatabaseUrl:
    def test_missing_url_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        with pytest.raises(ValueError, match="DATABASE_URL"):
            get_database_url()

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("postgresql://u:p@db:5432/penalties", "postgresql+asyncpg://u:p@db:5432/penalties"),
            ("postgres://u:p@db/penalties", "postgresql+asyncpg://u:p@db/penalties"),
            ("postgresql+asyncpg://u:p@db/penalties", "postgresql+asyncpg://u:p@db/penalties"),
            ("u:p@db/penalties", "postgresql+asyncpg://u:p@db/penalties"),
        ],
    )
    def test_normalizes_to_asyncpg(
        self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: str
    ) -> None:
        monkeypatch.setenv("DATABASE_URL", raw)

        assert get_database_url() == expected


class TestGetCommandTimeout:
    def test_default_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_COMMAND_TIMEOUT_SECONDS", raising=False)

        assert get_command_timeout() == DEFAULT_COMMAND_TIMEOUT_SECONDS

    def test_reads_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_COMMAND_TIMEOUT_SECONDS", "5.5")

        assert get_command_timeout() == 5.5

    @pytest.mark.parametrize("raw", ["soon", "0", "-3"])
    def test_unusable_values_fall_back(
        self, monkeypatch: pytest.MonkeyPatch, raw: str
    ) -> None:
        monkeypatch.setenv("DATABASE_COMMAND_TIMEOUT_SECONDS", raw)

        assert get_command_timeout() == DEFAULT_COMMAND_TIMEOUT_SECONDS


class TestMaskDatabaseUrl:
    def test_password_hidden(self) -> None:
        assert (
            mask_database_url("postgresql+asyncpg://penalty:s3cret@db:5432/penalties")
            == "postgresql+asyncpg://penalty:***@db:5432/penalties"
        )

    @pytest.mark.parametrize(
        "url",
        ["postgresql+asyncpg://db/penalties", "postgresql+asyncpg://penalty@db/penalties"],
    )
    def test_urls_without_password_unchanged(self, url: str) -> None:
        assert mask_database_url(url) == url


class TestGetSessionFactory:
    def test_singleton_until_reset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/penalties")

        first = get_session_factory()

        assert get_session_factory() is first
        reset_database_bootstrap()
        assert get_session_factory() is not first

    async def test_close_disposes_engine(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/penalties")
        get_session_factory()

        await database.close_database_engine()

        assert database._engine is None
        assert database._session_factory is None
