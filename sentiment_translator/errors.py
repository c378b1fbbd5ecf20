"""Errors raised at the analysis-provider boundary."""


class ProviderError(Exception):
    """Base class for every analysis-provider failure."""

    pass


class ProviderUnavailable(ProviderError):
    """Raised on network, authentication or upstream service failure."""

    pass


class MalformedResponse(ProviderError):
    """Raised when a provider reply is not JSON or misses a required field."""

    pass
