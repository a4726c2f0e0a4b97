"""Commit notification feed."""

from tutordesk.boundary.events.change_feed import ChangeFeed, WatchHandle

__all__ = ["ChangeFeed", "WatchHandle"]
