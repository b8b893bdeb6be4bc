# softphone/models/__init__.py
from softphone.models.base import Base  # noqa: F401

from softphone.models.call_log import CallDirection, CallLog, CallStatus  # noqa: F401
