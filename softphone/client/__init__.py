# softphone/client/__init__.py
from softphone.client.api import SoftphoneApi  # noqa: F401
from softphone.client.controller import CallSessionController  # noqa: F401
from softphone.client.signaling import CallLogEntry, TokenGrant  # noqa: F401
from softphone.client.transitions import CallEvent, CallState  # noqa: F401
