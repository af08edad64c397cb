from __future__ import annotations


class ForwarderError(RuntimeError):
    """Base class for every error raised by the forwarder."""


class ConfigurationError(ForwarderError):
    pass


class SessionError(ForwarderError):
    """Mailbox connect, login or protocol failure."""


class SendError(ForwarderError):
    pass


class CompletionError(ForwarderError):
    pass


class PersistenceError(ForwarderError):
    pass
