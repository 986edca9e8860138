"""SQLAlchemy database models for Car Thief mission history."""

from datetime import datetime, timezone

from sqlalchemy import create_engine, Column, Integer, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import declarative_base, relationship, sessionmaker


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


Base = declarative_base()


class MissionRecord(Base):
    """A resolved mission."""

    __tablename__ = "missions"

    id = Column(Integer, primary_key=True)
    mission_id = Column(String(120), nullable=False, index=True)
    mission_name = Column(String(200), nullable=False)
    category = Column(String(50), default="standard")
    outcome = Column(String(20), nullable=False)
    roll = Column(Float, nullable=True)  # None for forced outcomes
    chance = Column(Float, nullable=False)
    payout = Column(Integer, default=0)
    net_payout = Column(Integer, default=0)
    debt_paid = Column(Integer, default=0)
    heat_applied = Column(Float, default=0.0)
    difficulty = Column(Integer, default=1)
    district_id = Column(String(100), nullable=True)
    vehicle_id = Column(String(100), nullable=True)
    crew_ids = Column(String(500), default="")  # Comma separated
    resolved_at = Column(DateTime, default=utc_now)

    # Relationships
    fallout = relationship("FalloutEntry", back_populates="mission", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<MissionRecord(mission_id='{self.mission_id}', outcome='{self.outcome}')>"


class FalloutEntry(Base):
    """A crew member's fallout from a resolved mission."""

    __tablename__ = "fallout"

    id = Column(Integer, primary_key=True)
    mission_record_id = Column(Integer, ForeignKey("missions.id"), nullable=False)
    crew_id = Column(String(100), nullable=False, index=True)
    crew_name = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False)  # injured | captured | recovered
    severity = Column(String(20), nullable=False)
    timestamp = Column(DateTime, default=utc_now)

    # Relationships
    mission = relationship("MissionRecord", back_populates="fallout")

    def __repr__(self) -> str:
        return f"<FalloutEntry(crew='{self.crew_name}', status='{self.status}')>"


def init_database(db_path: str = "carthief.db") -> sessionmaker:
    """Initialize the database and return a session factory.

    Args:
        db_path: Path to SQLite database file (":memory:" for a throwaway store)

    Returns:
        Session factory for creating database sessions
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
