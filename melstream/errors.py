class MelstreamError(Exception):
    """Base class for all melstream errors."""


class ChannelClosed(MelstreamError):
    """Raised on send to, or receive from a drained, closed channel."""


class EngineLoadError(MelstreamError):
    """The recognition engine could not be constructed. Fatal at startup."""


class RecognitionError(MelstreamError):
    """The recognition engine failed on one segment. Recoverable."""
