"""
Tests for the database helpers
"""
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from smartstore.core.database import check_database, get_db_connection_with_retry

DSN = "postgresql://smartstore@localhost/smartstore"


class TestConnectionRetry:
    """Test psycopg2 connections with backoff"""

    @patch("smartstore.core.database.time.sleep")
    @patch("smartstore.core.database.psycopg2.connect")
    def test_retries_until_connected(self, mock_connect, mock_sleep):
        conn = MagicMock()
        mock_connect.side_effect = [psycopg2.OperationalError("server closed"), conn]

        result = get_db_connection_with_retry(DSN, max_retries=3, retry_delay=0.5)

        assert result is conn
        assert mock_connect.call_count == 2
        mock_sleep.assert_called_once_with(0.5)

    @patch("smartstore.core.database.time.sleep")
    @patch("smartstore.core.database.psycopg2.connect")
    def test_gives_up_after_max_retries(self, mock_connect, mock_sleep):
        mock_connect.side_effect = psycopg2.OperationalError("refused")

        with pytest.raises(psycopg2.OperationalError):
            get_db_connection_with_retry(DSN, max_retries=3, retry_delay=1.0)

        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_requires_url(self):
        with patch("smartstore.core.database.settings") as mock_settings:
            mock_settings.DATABASE_URL = ""
            with pytest.raises(ValueError):
                get_db_connection_with_retry()


class TestCheckDatabase:

    def test_connected(self, db):
        assert check_database(db)["status"] == "connected"

    def test_disconnected(self):
        session = MagicMock()
        session.execute.side_effect = RuntimeError("pool exhausted")

        result = check_database(session)

        assert result == {"status": "disconnected", "latency_ms": None, "error": "pool exhausted"}
