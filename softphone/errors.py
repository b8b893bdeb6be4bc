# softphone/errors.py
from typing import Iterable, Optional


class SoftphoneError(Exception):
    """Base class for every error raised by the call subsystem."""


class Unauthenticated(SoftphoneError):
    """The request carries no valid CRM session."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ConfigurationError(SoftphoneError):
    """
    Provider or transcription credentials are missing from the environment.

    This is a deployment problem, not a per-request condition: it is logged
    once at start-up and turned into a 500 at the HTTP boundary.
    """

    def __init__(self, missing: Iterable[str], component: str = "Twilio"):
        self.missing = list(missing)
        self.component = component
        super().__init__(
            f"{component} not configured, missing: {', '.join(self.missing)}"
        )


class SignalingError(SoftphoneError):
    """Registration or connect failure reported by the realtime channel."""


class WebhookValidationError(SoftphoneError):
    """A provider webhook failed signature validation."""


class EnrichmentFailure(SoftphoneError):
    """
    Recording fetch / transcription failed, or the call log row is not there
    yet. Always caught and logged, never surfaced.
    """

    def __init__(self, message: str, provider_call_id: Optional[str] = None):
        self.provider_call_id = provider_call_id
        super().__init__(message)


class DialRejected(SoftphoneError):
    """A dial attempt was refused before anything was sent to the provider."""
