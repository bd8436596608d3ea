"""
Core layer - Request pipeline, error model and raw types.

This layer provides:
- A single dispatch path (APIClient.execute) shared by every resource
- Error classification into a uniform APIError
- Request building, JSON (de)serialization and pagination
"""

from sendgrid_cli.core.classifier import classify, try_parse_json
from sendgrid_cli.core.client import APIClient
from sendgrid_cli.core.errors import (
    APIError,
    CLIError,
    ErrorKind,
    ResponseShapeError,
    ValidationError,
)
from sendgrid_cli.core.pagination import PaginationStrategy, Paginator
from sendgrid_cli.core.request import Endpoint, PreparedRequest, build_request
from sendgrid_cli.core.serialization import NULL, ResponseShape, deserialize, serialize
from sendgrid_cli.core.transport import CancellationToken, Transport, TransportResponse, UrllibTransport
from sendgrid_cli.core.types import (
    ApiKey,
    AuthenticatedDomain,
    DnsRecord,
    DomainUpdate,
    DomainValidation,
    Result,
    SpamReport,
    ValidationResult,
)

__all__ = [
    "NULL",
    "APIClient",
    "APIError",
    "ApiKey",
    "AuthenticatedDomain",
    "CLIError",
    "CancellationToken",
    "DnsRecord",
    "DomainUpdate",
    "DomainValidation",
    "Endpoint",
    "ErrorKind",
    "PaginationStrategy",
    "Paginator",
    "PreparedRequest",
    "ResponseShape",
    "ResponseShapeError",
    "Result",
    "SpamReport",
    "Transport",
    "TransportResponse",
    "UrllibTransport",
    "ValidationError",
    "ValidationResult",
    "build_request",
    "classify",
    "deserialize",
    "serialize",
    "try_parse_json",
]
