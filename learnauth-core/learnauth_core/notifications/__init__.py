"""
Notifications
=============
OTP delivery contract, email templates and the bundled sinks.
"""

from .base import NotificationSink
from .templates import OtpMessage, render_otp_message
from .http_sink import MailRelaySink, MailRelayRejected, MailRelayUnavailable
from .logging_sink import Delivery, LoggingSink

__all__ = [
    # Contract
    "NotificationSink",
    # Templates
    "OtpMessage",
    "render_otp_message",
    # Sinks
    "MailRelaySink",
    "MailRelayRejected",
    "MailRelayUnavailable",
    "Delivery",
    "LoggingSink",
]
