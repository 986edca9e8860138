"""Mission history persistence."""

from .models import MissionRecord, FalloutEntry
from .repository import MissionHistoryRepository, DatabaseError, create_repository

__all__ = ["MissionRecord", "FalloutEntry", "MissionHistoryRepository", "DatabaseError", "create_repository"]
