"""Mission history repository."""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from .models import FalloutEntry, MissionRecord, init_database
from ..utils.logging import get_logger

if TYPE_CHECKING:
    from ..missions.models import MissionLogEntry


logger = get_logger("database")


class DatabaseError(Exception):
    """Base exception for database operations."""
    pass


class MissionHistoryRepository:
    """Data access layer for resolved missions."""

    def __init__(self, db_path: str = "carthief.db"):
        """Initialize repository.

        Args:
            db_path: Path to SQLite database file
        """
        self._db_path = db_path
        self._session_factory = None
        self._initialized = False

    def initialize(self) -> bool:
        """Initialize the database connection.

        Returns:
            True if initialization successful
        """
        try:
            self._session_factory = init_database(self._db_path)
            self._initialized = True
            logger.info(f"Database initialized: {self._db_path}")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Failed to initialize database: {e}")
            return False

    @contextmanager
    def _session_scope(self):
        """Provide a transactional scope around operations."""
        if not self._initialized and not self.initialize():
            raise DatabaseError(f"Database unavailable: {self._db_path}")

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise DatabaseError(f"Database operation failed: {e}") from e
        finally:
            session.close()

    def close(self) -> None:
        """Release the session factory."""
        self._session_factory = None
        self._initialized = False

    # Writes

    def record_mission(self, entry: "MissionLogEntry") -> Optional[int]:
        """Persist a mission log entry and its fallout.

        Args:
            entry: Log entry produced by the resolution engine

        Returns:
            Row id of the stored record, or None on error
        """
        try:
            with self._session_scope() as session:
                record = MissionRecord(
                    mission_id=entry.mission_id,
                    mission_name=entry.mission_name,
                    category=entry.category,
                    outcome=entry.outcome,
                    roll=entry.roll,
                    chance=entry.chance,
                    payout=entry.payout,
                    net_payout=entry.net_payout,
                    debt_paid=entry.debt_paid,
                    heat_applied=entry.heat_applied,
                    difficulty=entry.difficulty,
                    district_id=entry.district_id,
                    vehicle_id=entry.vehicle_id,
                    crew_ids=",".join(entry.crew_ids),
                    resolved_at=entry.timestamp,
                )
                for fallout in entry.fallout:
                    record.fallout.append(FalloutEntry(
                        crew_id=fallout.crew_id,
                        crew_name=fallout.crew_name,
                        status=fallout.status,
                        severity=fallout.severity,
                        timestamp=fallout.timestamp,
                    ))
                session.add(record)
                session.flush()  # Get the ID
                logger.debug(f"Recorded mission {entry.mission_id} ({entry.outcome})")
                return record.id
        except DatabaseError as e:
            logger.error(f"Failed to record mission: {e}")
            return None

    # Reads

    def get_recent_missions(self, limit: int = 10) -> list[MissionRecord]:
        """Most recently resolved missions, newest first."""
        try:
            with self._session_scope() as session:
                records = (
                    session.query(MissionRecord)
                    .order_by(MissionRecord.resolved_at.desc(), MissionRecord.id.desc())
                    .limit(limit)
                    .all()
                )
                for record in records:
                    session.expunge(record)
                return records
        except DatabaseError as e:
            logger.error(f"Failed to get recent missions: {e}")
            return []

    def get_outcome_counts(self) -> dict[str, int]:
        """Number of missions per outcome."""
        try:
            with self._session_scope() as session:
                rows = (
                    session.query(MissionRecord.outcome, func.count(MissionRecord.id))
                    .group_by(MissionRecord.outcome)
                    .all()
                )
                return {outcome: count for outcome, count in rows}
        except DatabaseError as e:
            logger.error(f"Failed to get outcome counts: {e}")
            return {}

    def get_fallout_for_crew(self, crew_id: str) -> list[FalloutEntry]:
        """Every fallout entry recorded for a crew member, oldest first."""
        try:
            with self._session_scope() as session:
                entries = (
                    session.query(FalloutEntry)
                    .filter_by(crew_id=crew_id)
                    .order_by(FalloutEntry.id)
                    .all()
                )
                for fallout in entries:
                    session.expunge(fallout)
                return entries
        except DatabaseError as e:
            logger.error(f"Failed to get fallout for {crew_id}: {e}")
            return []

    def get_total_earnings(self) -> int:
        """Sum of net payouts across all recorded missions."""
        try:
            with self._session_scope() as session:
                total = session.query(func.sum(MissionRecord.net_payout)).scalar()
                return int(total or 0)
        except DatabaseError as e:
            logger.error(f"Failed to get total earnings: {e}")
            return 0


def create_repository(enabled: bool, db_path: str = "") -> Optional[MissionHistoryRepository]:
    """Build the repository the database settings ask for.

    Args:
        enabled: database.enabled setting
        db_path: database.path setting (empty = data directory)

    Returns:
        Initialized repository, or None when history is disabled
    """
    if not enabled:
        return None
    if not db_path:
        from ..config.settings import get_settings
        db_path = str(get_settings().data_dir / "carthief.db")
    repository = MissionHistoryRepository(db_path)
    repository.initialize()
    return repository
