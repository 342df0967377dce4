"""
Unit tests for slot naming and retention pruning.
"""

from datetime import datetime

import pytest

from dockup.cores.retention import list_slots, prune, slot_key, validate_bucket_kind


NOW = datetime(2026, 10, 19, 14, 3, 22)


def make_slots(root, names):
    for name in names:
        (root / name / "containers").mkdir(parents=True)


# =============================================================================
# Slot Keys
# =============================================================================


@pytest.mark.unit
class TestSlotKey:
    """Tests for slot_key()."""

    def test_hourly_key(self):
        assert slot_key("hourly", NOW) == "hourly_2026-10-19_14"

    def test_daily_key(self):
        assert slot_key("daily", NOW) == "daily_2026-10-19"

    def test_weekly_key_has_daily_resolution(self):
        assert slot_key("weekly", NOW) == "weekly_2026-10-19"

    def test_default_key_is_plain_timestamp(self):
        assert slot_key("default", NOW) == "2026-10-19_14-03-22"

    def test_same_hour_same_key(self):
        """Two runs within one hour share the hourly slot."""
        later = datetime(2026, 10, 19, 14, 59, 59)
        assert slot_key("hourly", NOW) == slot_key("hourly", later)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError, match="Unknown bucket kind"):
            slot_key("monthly", NOW)

    def test_validate_bucket_kind_returns_kind(self):
        assert validate_bucket_kind("daily") == "daily"


# =============================================================================
# Pruning
# =============================================================================


@pytest.mark.unit
class TestPrune:
    """Tests for list_slots() and prune()."""

    def test_list_slots_newest_first(self, tmp_path):
        make_slots(tmp_path, ["daily_2026-10-17", "daily_2026-10-19", "daily_2026-10-18"])
        names = [p.name for p in list_slots(tmp_path, "daily")]
        assert names == ["daily_2026-10-19", "daily_2026-10-18", "daily_2026-10-17"]

    def test_list_slots_missing_root(self, tmp_path):
        assert list_slots(tmp_path / "missing", "daily") == []

    def test_keeps_newest(self, tmp_path):
        """Only the keep_count newest slots of the kind survive."""
        make_slots(tmp_path, [f"daily_2026-10-{day:02d}" for day in range(10, 20)])

        removed = prune(tmp_path, "daily", 7)

        assert sorted(p.name for p in removed) == [
            "daily_2026-10-10", "daily_2026-10-11", "daily_2026-10-12"
        ]
        remaining = sorted(p.name for p in tmp_path.iterdir())
        assert remaining == [f"daily_2026-10-{day:02d}" for day in range(13, 20)]

    def test_other_kinds_untouched(self, tmp_path):
        make_slots(tmp_path, [
            "daily_2026-10-18", "daily_2026-10-19",
            "hourly_2026-10-19_01", "weekly_2026-10-12",
            "2026-10-01_00-00-00",
        ])

        prune(tmp_path, "daily", 1)

        remaining = sorted(p.name for p in tmp_path.iterdir())
        assert remaining == [
            "2026-10-01_00-00-00", "daily_2026-10-19",
            "hourly_2026-10-19_01", "weekly_2026-10-12",
        ]

    def test_idempotent(self, tmp_path):
        make_slots(tmp_path, [f"hourly_2026-10-19_{h:02d}" for h in range(5)])

        prune(tmp_path, "hourly", 2)
        second = prune(tmp_path, "hourly", 2)

        assert second == []
        assert len(list(tmp_path.iterdir())) == 2

    def test_fewer_slots_than_keep_count(self, tmp_path):
        make_slots(tmp_path, ["weekly_2026-10-12"])
        assert prune(tmp_path, "weekly", 4) == []
        assert (tmp_path / "weekly_2026-10-12").is_dir()

    def test_keep_zero_removes_all_of_kind(self, tmp_path):
        make_slots(tmp_path, ["daily_2026-10-18", "daily_2026-10-19"])
        assert len(prune(tmp_path, "daily", 0)) == 2
        assert list(tmp_path.iterdir()) == []

    def test_default_slots_never_pruned(self, tmp_path):
        make_slots(tmp_path, ["2026-10-01_00-00-00", "2026-10-02_00-00-00"])
        assert prune(tmp_path, "default", 0) == []
        assert len(list(tmp_path.iterdir())) == 2

    def test_files_ignored(self, tmp_path):
        """Only directories count as slots."""
        make_slots(tmp_path, ["daily_2026-10-19"])
        (tmp_path / "daily_notes.txt").write_text("x")
        prune(tmp_path, "daily", 0)
        assert (tmp_path / "daily_notes.txt").exists()

    def test_negative_keep_count_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="negative"):
            prune(tmp_path, "daily", -1)
