# exceptions.py

class DriveBotError(Exception):
    """Base class for errors raised by drivebot."""
    pass

class StorageError(DriveBotError):
    """A remote storage call failed. The message is shown to the user as-is."""
    pass

class CommandParseError(DriveBotError):
    """A recognized command had malformed arguments."""

    def __init__(self, usage: str):
        super().__init__(usage)
        self.usage = usage

class SummaryError(DriveBotError):
    """The summarization service could not produce a summary."""
    pass
