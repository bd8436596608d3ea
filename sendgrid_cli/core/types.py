"""
Core types for the SendGrid v3 API.

These dataclasses provide type safety and IDE support for API responses.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from sendgrid_cli.core.errors import APIError
from sendgrid_cli.core.serialization import require_field

T = TypeVar("T")


def from_timestamp(value: Any) -> datetime | None:
    """Unix timestamp to an aware UTC datetime."""
    if value is None or value == "":
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


# =============================================================================
# Result
# =============================================================================


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of one dispatched call: a value or an APIError, never both."""

    value: T | None = None
    error: APIError | None = None

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("A Result cannot hold both a value and an error")

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: APIError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


# =============================================================================
# API Key Types
# =============================================================================


@dataclass
class ApiKey:
    """An API key. The secret (`key`) is only returned on creation and on get."""

    key_id: str
    name: str = ""
    key: str | None = None
    scopes: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApiKey":
        """Create from API response dict."""
        return cls(
            key_id=require_field(data, "api_key_id"),
            name=data.get("name") or "",
            key=data.get("api_key"),
            scopes=data.get("scopes") or [],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "api_key_id": self.key_id,
            "name": self.name,
            "api_key": self.key,
            "scopes": self.scopes or None,
        }


# =============================================================================
# Suppression Types
# =============================================================================


@dataclass
class SpamReport:
    """A recipient who marked a message as spam."""

    email: str
    created: datetime | None = None
    ip: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpamReport":
        """Create from API response dict."""
        return cls(
            email=data.get("email", ""),
            created=from_timestamp(data.get("created")),
            ip=data.get("ip"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "created": int(self.created.timestamp()) if self.created else None,
            "ip": self.ip,
        }


# =============================================================================
# Domain Authentication Types
# =============================================================================


@dataclass
class DnsRecord:
    """A DNS record the sender must publish to authenticate a domain."""

    host: str = ""
    type: str = ""
    data: str = ""
    valid: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DnsRecord":
        """Create from API response dict."""
        return cls(
            host=data.get("host", ""),
            type=data.get("type", ""),
            data=data.get("data", ""),
            valid=bool(data.get("valid", False)),
        )


@dataclass
class AuthenticatedDomain:
    """A domain authenticated for sending (formerly "domain whitelabel")."""

    id: int
    domain: str
    subdomain: str | None = None
    username: str | None = None
    user_id: int | None = None
    ips: list[str] = field(default_factory=list)
    custom_spf: bool = False
    default: bool = False
    legacy: bool = False
    automatic_security: bool = False
    valid: bool = False
    dns: dict[str, DnsRecord] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuthenticatedDomain":
        """Create from API response dict."""
        return cls(
            id=require_field(data, "id"),
            domain=data.get("domain", ""),
            subdomain=data.get("subdomain"),
            username=data.get("username"),
            user_id=data.get("user_id"),
            ips=data.get("ips") or [],
            custom_spf=bool(data.get("custom_spf", False)),
            default=bool(data.get("default", False)),
            legacy=bool(data.get("legacy", False)),
            automatic_security=bool(data.get("automatic_security", False)),
            valid=bool(data.get("valid", False)),
            dns={name: DnsRecord.from_dict(record) for name, record in (data.get("dns") or {}).items()},
        )


@dataclass
class DomainUpdate:
    """
    Partial update of an authenticated domain.

    Fields left as None are not sent; set a field to NULL to send an explicit
    null.
    """

    default: Any = None
    custom_spf: Any = None


@dataclass
class ValidationResult:
    """Outcome of validating one DNS record."""

    valid: bool = False
    reason: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidationResult":
        """Create from API response dict."""
        return cls(valid=bool(data.get("valid", False)), reason=data.get("reason"))


@dataclass
class DomainValidation:
    """Result of asking SendGrid to check a domain's DNS records."""

    id: int
    valid: bool = False
    validation_results: dict[str, ValidationResult] = field(default_factory=dict)

    @property
    def failed_records(self) -> list[str]:
        """Names of records that did not validate."""
        return [name for name, result in self.validation_results.items() if not result.valid]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DomainValidation":
        """Create from API response dict."""
        return cls(
            id=require_field(data, "id"),
            valid=bool(data.get("valid", False)),
            validation_results={
                name: ValidationResult.from_dict(result)
                for name, result in (data.get("validation_results") or {}).items()
            },
        )
