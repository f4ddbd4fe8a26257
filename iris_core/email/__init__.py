"""
Email Delivery
==============
Transports for delivering OTP codes by email.
"""

from .base import BaseEmailSender, EmailAddress, EmailMessage, EmailResult, html_to_text
from .brevo import BrevoEmailSender, BREVO_API_URL
from .templates import render_otp_email

__all__ = [
    "BaseEmailSender",
    "EmailAddress",
    "EmailMessage",
    "EmailResult",
    "html_to_text",
    "BrevoEmailSender",
    "BREVO_API_URL",
    "render_otp_email",
]
