"""Data management: schemas and the in-memory signal store."""

from competitive_intel.data_management.signal_store import SignalStore

__all__ = ["SignalStore"]
