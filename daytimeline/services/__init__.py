"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .time_tracker import CategorySummary, RecordStoreProtocol, TimeTrackerService

__all__ = ["CategorySummary", "RecordStoreProtocol", "TimeTrackerService"]
