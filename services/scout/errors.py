"""
Error taxonomy shared by the upstream clients and the HTTP layer.

  UpstreamHttpError     non-2xx status (or transport failure) from a provider
  UpstreamParseError    empty or unrepairable response body
  UpstreamLogicalError  provider answered 200 but the body carries an error
  QueryValidationError  bad/missing query parameter, rejected before any call
  MalformedStationData  one station/observation is unusable; dropped, never
                        surfaced past the client that found it

main.py maps the Upstream* family to HTTP 500 and QueryValidationError to 400.
"""

from __future__ import annotations


class UpstreamError(Exception):
    """Base class for failures talking to an external provider."""

    def __init__(self, message: str, provider: str = "") -> None:
        super().__init__(message)
        self.provider = provider


class UpstreamHttpError(UpstreamError):
    def __init__(self, message: str, status_code: int | None = None, provider: str = "") -> None:
        super().__init__(message, provider=provider)
        self.status_code = status_code


class UpstreamParseError(UpstreamError):
    pass


class UpstreamLogicalError(UpstreamError):
    pass


class QueryValidationError(Exception):
    pass


class MalformedStationData(Exception):
    pass
