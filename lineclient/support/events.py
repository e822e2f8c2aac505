import logging

logger = logging.getLogger(__name__)


class EventSource(object):
    """
    A list of handlers that are each called with the arguments passed to fire().
    A handler that raises does not stop the remaining handlers from being notified.
    """

    def __init__(self):
        self._handlers = []

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        if handler not in self._handlers:
            self._handlers.append(handler)
        return self

    def remove(self, handler):
        if handler in self._handlers:
            self._handlers.remove(handler)
        return self

    def handlers(self):
        return tuple(self._handlers)

    def fire(self, *args, **kwargs):
        # iterate over a snapshot so handlers may add/remove handlers while being notified
        for handler in self.handlers():
            try:
                handler(*args, **kwargs)
            except Exception:
                logger.exception("event handler %s failed" % handler)
