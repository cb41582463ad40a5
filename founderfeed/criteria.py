"""
Criteria store: the active filters and compatibility preferences.

Pure state plus persistence, no network. Every mutation notifies ``subscribe``
listeners once, tagged ``debounced`` when only text-bearing fields changed.
Settled listeners (``subscribe_settled``) see the same changes after the
debounce window has passed, or straight away for immediate changes; that is
the signal the feed uses to start a Replace.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Tuple

from .logger import StructuredLogger, get_logger
from .models import TEXT_FIELDS, FilterCriteria, PreferenceVector
from .schema import clean_preferences, validate_preferences
from .storage import SettingsStore
from .timers import DebounceTimer

PREFERENCES_KEY = "discoveryPreferences"
DEFAULT_DEBOUNCE_SECONDS = 0.5


@dataclass(frozen=True)
class CriteriaChange:
    criteria: FilterCriteria
    preferences: PreferenceVector
    changed: Tuple[str, ...]
    debounced: bool


Listener = Callable[[CriteriaChange], None]


class CriteriaStore:
    def __init__(
        self,
        storage: Optional[SettingsStore] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        criteria: Optional[FilterCriteria] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.storage = storage
        self.logger = logger or get_logger()
        self.debouncer = DebounceTimer(debounce_seconds)
        self._criteria = criteria or FilterCriteria()
        self._preferences = self._load_preferences()
        self._listeners: List[Listener] = []
        self._settled_listeners: List[Listener] = []

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def preferences(self) -> PreferenceVector:
        return PreferenceVector(self._preferences)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def subscribe_settled(self, listener: Listener) -> Callable[[], None]:
        self._settled_listeners.append(listener)
        return lambda: self._settled_listeners.remove(listener)

    # Filters

    def set_filter(self, partial: Optional[Mapping[str, Any]] = None, **kwargs) -> FilterCriteria:
        """Merge ``partial`` into the criteria and return the new full criteria."""
        values = dict(partial or {}, **kwargs)
        if not values:
            return self._criteria
        self._criteria = self._criteria.merged(values)
        self._emit(tuple(values))
        return self._criteria

    def clear_filter(self, key: str) -> FilterCriteria:
        """Reset one filter to empty (a single chip removal)."""
        if key not in FilterCriteria.field_names():
            raise ValueError(f"Unknown filter key: {key}")
        return self.set_filter({key: () if key == "skills" else ""})

    def remove_skill(self, skill: str) -> FilterCriteria:
        return self.set_filter(skills=[s for s in self._criteria.skills if s != skill])

    def clear_filters(self) -> FilterCriteria:
        self._criteria = FilterCriteria()
        self._emit(tuple(FilterCriteria.field_names()))
        return self._criteria

    # Preferences

    def set_preferences(self, vector: Mapping[str, str]) -> PreferenceVector:
        """Replace and persist the preference vector.

        Raises:
            ValueError: Unknown question or option
        """
        errors = validate_preferences(dict(vector))
        if errors:
            raise ValueError("Invalid preferences: " + "; ".join(errors))
        self._preferences = PreferenceVector(clean_preferences(dict(vector)))
        if self.storage is not None:
            self.storage.set(PREFERENCES_KEY, dict(self._preferences))
        self.logger.debug("Preferences saved", answered=self._preferences.answered_count)
        self._emit(("preferences",))
        return self.preferences

    def clear_preferences(self) -> PreferenceVector:
        return self.set_preferences({})

    def _load_preferences(self) -> PreferenceVector:
        if self.storage is None:
            return PreferenceVector()
        saved = self.storage.get(PREFERENCES_KEY, {})
        errors = validate_preferences(saved)
        if errors:
            self.logger.warning("Discarding invalid saved preferences", errors=errors)
            return PreferenceVector()
        return PreferenceVector(clean_preferences(saved))

    # Propagation

    def flush(self) -> bool:
        """Fire a pending debounced change now. Returns whether one was pending."""
        if not self.debouncer.pending:
            return False
        self.debouncer.cancel()
        self._settle(self._snapshot((), debounced=True))
        return True

    def dispose(self):
        self.debouncer.cancel()
        self._listeners.clear()
        self._settled_listeners.clear()

    def _snapshot(self, changed: Tuple[str, ...], debounced: bool) -> CriteriaChange:
        return CriteriaChange(
            criteria=self._criteria,
            preferences=self.preferences,
            changed=changed,
            debounced=debounced,
        )

    def _emit(self, changed: Tuple[str, ...]):
        debounced = all(key in TEXT_FIELDS for key in changed)
        change = self._snapshot(changed, debounced)
        for listener in list(self._listeners):
            listener(change)

        if debounced:
            self.debouncer.start(lambda: self._settle(self._snapshot(changed, True)))
        else:
            # An immediate change carries any pending text edits along with it.
            self.debouncer.cancel()
            self._settle(change)

    def _settle(self, change: CriteriaChange):
        for listener in list(self._settled_listeners):
            listener(change)
