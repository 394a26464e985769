"""Domain services."""

from ballotbox.domain.services.page_navigator import PageNavigator, Progress
from ballotbox.domain.services.selection_store import SelectionStore


__all__ = ["PageNavigator", "Progress", "SelectionStore"]
