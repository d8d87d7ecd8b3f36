from typing import Callable, List


class Observable:
    """Owned state object that tells subscribers when it changes."""

    def __init__(self):
        self._subscribers: List[Callable] = []
        self.loading = False
        self.error = None

    def subscribe(self, callback: Callable) -> Callable[[], None]:
        """Register `callback(store)`; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self):
        for callback in list(self._subscribers):
            callback(self)

    def _begin(self):
        self.loading = True
        self.error = None
        self._notify()

    def _done(self):
        self.loading = False
        self._notify()

    def _fail(self, exc: Exception):
        self.error = str(exc)
        self.loading = False
        self._notify()

    def set_error(self, error):
        self.error = error
        self._notify()
