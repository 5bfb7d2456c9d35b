from fixtures import Fixture

from twisted.logger import LogLevel, formatEvent, globalLogPublisher


class CapturedLogs(Fixture):
    """
    Collect the events logged to the global log publisher while the fixture
    is active.
    """
    def _setUp(self):
        self.events = []
        globalLogPublisher.addObserver(self.events.append)
        self.addCleanup(globalLogPublisher.removeObserver, self.events.append)

    def messages(self, level=None):
        """
        The formatted messages, optionally only those logged at ``level``
        (a ``LogLevel`` name such as ``'error'``).
        """
        if level is not None:
            level = LogLevel.levelWithName(level)
        return [formatEvent(event) for event in self.events
                if level is None or event['log_level'] == level]
