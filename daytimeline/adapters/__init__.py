"""
Adapters layer - Persistence of time records (REST backend and mock).
"""

from .mock_record_store import MockRecordStore
from .record_client import TimeRecordClient
from .records import SlotRecommendation, TimeRecord

__all__ = ["MockRecordStore", "SlotRecommendation", "TimeRecordClient", "TimeRecord"]
