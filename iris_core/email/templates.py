"""
OTP Email Templates
===================
"""

import html
from typing import Tuple


def render_otp_email(code: str, expiry_minutes: int = 5, app_name: str = "Iris") -> Tuple[str, str]:
    """
    Render the subject and HTML body for an OTP email.

    Returns:
        Tuple of (subject, html_body)
    """
    app = html.escape(app_name)
    subject = f"Your {app_name} verification code"
    minutes = "minute" if expiry_minutes == 1 else "minutes"
    body = (
        "<div style=\"font-family: sans-serif;\">"
        f"<p>Your {app} verification code is:</p>"
        f"<p style=\"font-size: 24px; letter-spacing: 4px;\"><strong>{html.escape(code)}</strong></p>"
        f"<p>This code expires in {expiry_minutes} {minutes}.</p>"
        "<p>If you did not request this code, you can ignore this email.</p>"
        "</div>"
    )
    return subject, body
