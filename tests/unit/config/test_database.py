"""
Tests for database configuration and connection management.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from reelcache.config.database import DatabaseManager


class TestDatabaseManager:
    """Test DatabaseManager functionality."""

    def test_init(self):
        """Test DatabaseManager initialization."""
        manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
        assert manager._engine is None
        assert manager._session_factory is None
        assert manager.database_url == "sqlite+aiosqlite:///:memory:"

    @patch("reelcache.config.database.create_async_engine")
    def test_get_engine(self, mock_create_engine):
        """Test engine creation and reuse."""
        mock_engine = MagicMock()
        mock_create_engine.return_value = mock_engine

        manager = DatabaseManager("sqlite+aiosqlite:///:memory:")

        engine = manager.get_engine()
        assert engine == mock_engine
        mock_create_engine.assert_called_once()

        engine2 = manager.get_engine()
        assert engine2 == mock_engine
        assert mock_create_engine.call_count == 1

    @patch("reelcache.config.database.create_async_engine")
    def test_sqlite_engine_has_no_pool_options(self, mock_create_engine):
        """Pool tuning only applies to server databases."""
        DatabaseManager("sqlite+aiosqlite:///:memory:").get_engine()
        assert "pool_pre_ping" not in mock_create_engine.call_args.kwargs

        DatabaseManager("postgresql+asyncpg://u:p@db/site").get_engine()
        assert mock_create_engine.call_args.kwargs["pool_pre_ping"] is True

    @pytest.mark.asyncio
    async def test_close_disposes_engine(self):
        """Test engine disposal."""
        manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
        mock_engine = MagicMock()
        mock_engine.dispose = AsyncMock()
        manager._engine = mock_engine

        await manager.close()

        mock_engine.dispose.assert_awaited_once()
        assert manager._engine is None
        assert manager._session_factory is None

    @pytest.mark.asyncio
    async def test_session_lifecycle(self, tmp_path: Path):
        """Test table creation and a session round trip."""
        manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
        await manager.create_tables()

        sessions = 0
        async for session in manager.get_session():
            assert session.is_active
            sessions += 1

        assert sessions == 1
        await manager.drop_tables()
        await manager.close()
