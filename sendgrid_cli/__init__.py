"""
SendGrid CLI - Three-layer architecture for the SendGrid v3 API.

Layers:
- core: Request pipeline, error model and raw types
- sdk: High-level SendGridClient with nice ergonomics
- cli: Opinionated command-line interface
"""

from sendgrid_cli.core.errors import APIError, ErrorKind
from sendgrid_cli.sdk import SendGridClient

__version__ = "0.1.0"
__all__ = ["APIError", "ErrorKind", "SendGridClient"]
