"""Service-level exceptions.

Services raise these; routers translate them into HTTP responses.
"""


class GrowthTrackError(Exception):
    """Base exception for service errors."""

    pass


class AccessError(GrowthTrackError):
    """Base class for access denials."""

    pass


class InvalidCredentialsError(AccessError):
    """Token/code mismatch or revoked link. Never says which part was wrong."""

    pass


class ExpiredError(AccessError):
    """Credentials matched but the link's validity window has passed."""

    pass


class NotConnectedError(AccessError):
    """No usable calendar credential on file; the user must re-authorize."""

    pass


class NotFoundError(GrowthTrackError):
    """Row missing or not owned by the caller."""

    pass


class UpstreamFailure(GrowthTrackError):
    """Non-success response from an external provider.

    ``status`` is 0 when the request never produced a response.
    """

    def __init__(self, status: int, body: str = "", message: str | None = None):
        self.status = status
        self.body = body
        self.message = message or f"Upstream request failed with status {status}"
        super().__init__(self.message)


class ConfigurationError(GrowthTrackError):
    """A required integration setting is missing."""

    pass
