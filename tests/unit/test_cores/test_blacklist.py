"""Unit tests for the Blacklist filter."""

import pytest

from dockup.cores.blacklist import Blacklist
from dockup.helpers.errors import BlacklistedError, DockupError


@pytest.mark.unit
class TestBlacklist:
    """Tests for Blacklist membership and check()."""

    def test_membership(self):
        blacklist = Blacklist(["db", "secrets"])
        assert "db" in blacklist
        assert blacklist.is_blacklisted("secrets")
        assert "web" not in blacklist
        assert len(blacklist) == 2

    def test_exact_match_only(self):
        """No prefix, glob or case-insensitive matching."""
        blacklist = Blacklist(["db"])
        assert not blacklist.is_blacklisted("db-replica")
        assert not blacklist.is_blacklisted("DB")
        assert not blacklist.is_blacklisted("d*")

    def test_empty(self):
        blacklist = Blacklist()
        assert len(blacklist) == 0
        assert not blacklist.is_blacklisted("")

    def test_check_passes_for_allowed_name(self):
        Blacklist(["db"]).check("web")

    def test_check_raises(self):
        with pytest.raises(BlacklistedError) as exc_info:
            Blacklist(["db"]).check("db")

        assert exc_info.value.name == "db"
        assert str(exc_info.value) == "db is blacklisted, skipping"
        assert isinstance(exc_info.value, DockupError)

    def test_check_logs_warning(self, caplog):
        with caplog.at_level("WARNING", logger="dockup"):
            with pytest.raises(BlacklistedError):
                Blacklist(["secrets"]).check("secrets", kind="volume")
        assert "Volume secrets is blacklisted" in caplog.text
