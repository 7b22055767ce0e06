"""Error taxonomy for a single token analysis.

Only creator resolution can fail a request; every other lookup degrades to
absent evidence. These exceptions are what the HTTP layer maps to statuses.
"""


class AnalysisError(Exception):
    pass


class ConfigurationError(AnalysisError):
    """Upstream credential missing or still the placeholder value."""


class InvalidApiKeyError(ConfigurationError):
    """Upstream provider rejected the configured credential."""


class TokenNotFoundError(AnalysisError):
    """No transaction history exists for the mint."""


class UpstreamError(AnalysisError):
    """The mandatory creator lookup failed (rate limit, 5xx, bad payload)."""


class AnalysisTimeoutError(AnalysisError):
    pass
