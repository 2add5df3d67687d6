"""
Error taxonomy for registry scraping.

Engines raise these; the router converts every one of them into a failed
``ScraperResult`` so callers of the public contract never see an exception.
``recordable`` marks errors that count as a circuit-breaker failure for the
jurisdiction that produced them.
"""

from __future__ import annotations


class RegistryScraperError(RuntimeError):
    """
    Base class for all registry scraping failures.
    """

    recordable: bool = False

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class ConfigurationError(RegistryScraperError):
    """
    Missing or invalid jurisdiction configuration. Never retried.
    """


class InvalidQueryError(ConfigurationError):
    """
    Search query rejected before any network action.
    """


class CircuitOpenError(RegistryScraperError):
    """
    The jurisdiction's breaker is open; carries seconds until a probe is allowed.
    """

    def __init__(self, message: str, *, source: str | None = None, retry_after: float = 0.0) -> None:
        super().__init__(message, source=source)
        self.retry_after = max(0.0, retry_after)


class RateLimitTimeout(RegistryScraperError):
    """
    A bounded rate-limit acquisition could not get a token in time.
    """

    def __init__(self, message: str, *, source: str | None = None, retry_after: float = 0.0) -> None:
        super().__init__(message, source=source)
        self.retry_after = max(0.0, retry_after)


class TransportError(RegistryScraperError):
    """
    Network, DNS, TLS, timeout or non-success HTTP status.
    """

    recordable = True

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, source=source)
        self.status_code = status_code
        self.url = url


class ParseError(RegistryScraperError):
    """
    A response arrived but no record with a resolvable entity name could be built.
    """

    recordable = True


class ChallengeUnresolved(RegistryScraperError):
    """
    A CAPTCHA challenge could not be solved, or no solver is available.
    """

    recordable = True


class ChallengeDetected(ChallengeUnresolved):
    """
    A plain HTTP fetch hit a challenge page; a browser session may still succeed.
    """
