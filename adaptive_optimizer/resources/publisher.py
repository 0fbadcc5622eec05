"""
In-memory fan-out of optimization settings to observers.

New observers are called once with the current settings as part of
``subscribe()``, so a panel that joins late renders the right state
straight away. Replays and publishes are delivered one at a time, so a
late joiner never sees its replay after a newer value. Each observer call
is isolated: an observer that raises is logged and the remaining observers
are still notified.
"""

from __future__ import annotations

import itertools
import threading
from typing import Callable, List, Optional, Tuple, TYPE_CHECKING

from ..exceptions import ObserverNotificationError, OptimizerContext
from .data_models import OptimizationSettings

if TYPE_CHECKING:
    from ..logger import ProductionLogger

SettingsObserver = Callable[[OptimizationSettings], None]
Unsubscribe = Callable[[], None]


class SettingsPublisher:
    """Holds the single current settings value and notifies observers of changes."""

    def __init__(
        self,
        initial: OptimizationSettings,
        logger: Optional["ProductionLogger"] = None,
    ):
        self.logger = logger
        self._current = initial
        self._observers: List[Tuple[int, SettingsObserver]] = []
        self._ids = itertools.count()
        self._lock = threading.RLock()
        # Held across a whole delivery (replay or fan-out); re-entrant for observers that publish
        self._delivery_lock = threading.RLock()
        self.failed_notifications = 0

    def current(self) -> OptimizationSettings:
        with self._lock:
            return self._current

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def subscribe(self, observer: SettingsObserver) -> Unsubscribe:
        """Register ``observer`` and replay the current settings to it.

        Returns a disposer that removes the observer; calling it twice is harmless.
        """
        with self._delivery_lock:
            with self._lock:
                handle = next(self._ids)
                self._observers.append((handle, observer))
                current = self._current

            self._notify(handle, observer, current)

        def unsubscribe() -> None:
            with self._lock:
                self._observers = [(h, o) for h, o in self._observers if h != handle]

        return unsubscribe

    def publish(self, settings: OptimizationSettings) -> None:
        """Make ``settings`` current and notify observers in subscription order."""
        with self._delivery_lock:
            with self._lock:
                self._current = settings
                observers = list(self._observers)

            for handle, observer in observers:
                self._notify(handle, observer, settings)

    def _notify(self, handle: int, observer: SettingsObserver, settings: OptimizationSettings) -> None:
        try:
            observer(settings)
        except Exception as e:
            with self._lock:
                self.failed_notifications += 1
            error = ObserverNotificationError(
                f"Settings observer raised {type(e).__name__}: {e}",
                observer=getattr(observer, "__qualname__", repr(observer)),
                context=OptimizerContext(component="SettingsPublisher", metadata={"handle": handle}),
                original_exception=e,
            )
            if self.logger:
                self.logger.error("Settings observer failed", error=error.to_dict())
