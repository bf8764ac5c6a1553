"""Error taxonomy shared by the proxy and the chat session."""


class StillWatersError(Exception):
    pass


class NoCredentialError(StillWatersError):
    """No usable Gemini key is configured; the mock provider answers instead."""


class QuotaExceededError(StillWatersError):
    """The caller used up its request quota for the current window."""

    def __init__(self, message: str = "Too many requests from this IP, please try again after an hour"):
        super().__init__(message)
        self.message = message


class UpstreamCallError(StillWatersError):
    """The generative-language backend failed, timed out, or was unreachable."""


class ResponseParseError(StillWatersError):
    """The model answered, but not with the structured JSON we asked for."""

    def __init__(self, message: str, raw_output: str = ""):
        super().__init__(message)
        self.raw_output = raw_output


class ProxyUnavailableError(StillWatersError):
    """Client side: the proxy could not produce an answer."""
