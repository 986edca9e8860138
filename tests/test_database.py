"""Unit tests for the mission history repository."""

import pytest
import tempfile
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from carthief.database.repository import MissionHistoryRepository, create_repository
from carthief.missions.models import DebtSettlement, FalloutRecord, MissionLogEntry


BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_entry(mission_id="showroom-heist", outcome="success", net_payout=15000, minutes=0, fallout=()):
    """Build a log entry the way the resolution engine does."""
    return MissionLogEntry(
        mission_id=mission_id,
        mission_name=mission_id.replace("-", " ").title(),
        outcome=outcome,
        roll=0.4 if outcome == "success" else None,
        chance=0.7,
        payout=net_payout if outcome == "success" else 0,
        net_payout=net_payout if outcome == "success" else 0,
        heat_applied=2.0,
        difficulty=2,
        category="standard",
        district_id="downtown",
        crew_ids=["crew-ace", "crew-bo"],
        fallout=list(fallout),
        timestamp=BASE_TIME + timedelta(minutes=minutes),
    )


class TestMissionHistoryRepository:
    """Tests for MissionHistoryRepository class."""

    @pytest.fixture
    def temp_db(self):
        """Create a temporary database file."""
        fd, path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        yield path
        # Cleanup
        try:
            os.unlink(path)
        except OSError:
            pass

    @pytest.fixture
    def repository(self, temp_db):
        """Create a repository with temporary database."""
        repo = MissionHistoryRepository(temp_db)
        repo.initialize()
        return repo

    # Initialization tests
    def test_initialize_creates_tables(self, temp_db):
        repo = MissionHistoryRepository(temp_db)
        assert repo.initialize()
        assert Path(temp_db).exists()

    def test_double_initialize_is_safe(self, repository):
        assert repository.initialize()

    def test_lazy_initialize(self, temp_db):
        # First query initializes the store
        repo = MissionHistoryRepository(temp_db)
        assert repo.get_recent_missions() == []

    # Write tests
    def test_record_mission(self, repository):
        record_id = repository.record_mission(make_entry())
        assert record_id is not None

        records = repository.get_recent_missions()
        assert len(records) == 1
        assert records[0].mission_id == "showroom-heist"
        assert records[0].crew_ids == "crew-ace,crew-bo"
        assert records[0].roll == pytest.approx(0.4)

    def test_forced_outcome_has_no_roll(self, repository):
        repository.record_mission(make_entry(outcome="failure"))
        assert repository.get_recent_missions()[0].roll is None

    def test_record_debt_paid(self, repository):
        entry = make_entry(net_payout=12000)
        entry.debt_settlements = [DebtSettlement("debt-1", 3000, 0)]
        repository.record_mission(entry)

        assert repository.get_recent_missions()[0].debt_paid == 3000

    def test_record_fallout(self, repository):
        fallout = [
            FalloutRecord("crew-ace", "Ace", "captured", "serious", "showroom-heist", BASE_TIME),
            FalloutRecord("crew-bo", "Bo", "injured", "serious", "showroom-heist", BASE_TIME),
        ]
        repository.record_mission(make_entry(outcome="failure", fallout=fallout))

        entries = repository.get_fallout_for_crew("crew-ace")
        assert len(entries) == 1
        assert entries[0].status == "captured"
        assert entries[0].severity == "serious"

    # Read tests
    def test_recent_missions_newest_first(self, repository):
        for i in range(5):
            repository.record_mission(make_entry(mission_id=f"job-{i}", minutes=i))

        records = repository.get_recent_missions(limit=3)
        assert [r.mission_id for r in records] == ["job-4", "job-3", "job-2"]

    def test_outcome_counts(self, repository):
        repository.record_mission(make_entry(outcome="success"))
        repository.record_mission(make_entry(outcome="success"))
        repository.record_mission(make_entry(outcome="failure"))

        assert repository.get_outcome_counts() == {"success": 2, "failure": 1}

    def test_fallout_history_oldest_first(self, repository):
        for i, status in enumerate(["injured", "recovered", "captured"]):
            record = FalloutRecord("crew-ace", "Ace", status, "minor", f"job-{i}", BASE_TIME)
            repository.record_mission(make_entry(mission_id=f"job-{i}", outcome="failure", fallout=[record]))

        entries = repository.get_fallout_for_crew("crew-ace")
        assert [e.status for e in entries] == ["injured", "recovered", "captured"]

    # Statistics tests
    def test_get_total_earnings(self, repository):
        repository.record_mission(make_entry(net_payout=15000))
        repository.record_mission(make_entry(net_payout=8000))
        repository.record_mission(make_entry(outcome="failure"))

        assert repository.get_total_earnings() == 23000

    def test_empty_store(self, repository):
        assert repository.get_total_earnings() == 0
        assert repository.get_outcome_counts() == {}
        assert repository.get_fallout_for_crew("crew-nobody") == []

    # Error handling tests
    def test_unavailable_database_returns_defaults(self, tmp_path):
        # A directory cannot be opened as a database file
        repo = MissionHistoryRepository(str(tmp_path))
        assert repo.record_mission(make_entry()) is None
        assert repo.get_recent_missions() == []
        assert repo.get_total_earnings() == 0

    def test_close_repository(self, repository):
        # Should not raise
        repository.close()
        repository.close()  # Double close should be safe


class TestCreateRepository:
    """Tests for the settings-driven factory."""

    def test_disabled(self, tmp_path):
        assert create_repository(False, str(tmp_path / "history.db")) is None

    def test_enabled_with_path(self, tmp_path):
        path = tmp_path / "history.db"
        repo = create_repository(True, str(path))
        assert isinstance(repo, MissionHistoryRepository)
        assert path.exists()
        repo.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
