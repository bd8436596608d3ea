"""
SendGrid SDK - High-level client with nice ergonomics.

This layer provides a clean, typed interface for common SendGrid operations.
Built on top of the core APIClient: every method is one call into
`APIClient.execute` (or a paginator over it) with a fixed endpoint.
"""

import builtins
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sendgrid_cli.core.client import APIClient
from sendgrid_cli.core.errors import ValidationError
from sendgrid_cli.core.pagination import Paginator
from sendgrid_cli.core.request import Endpoint
from sendgrid_cli.core.serialization import ResponseShape
from sendgrid_cli.core.transport import CancellationToken, Transport
from sendgrid_cli.core.types import (
    ApiKey,
    AuthenticatedDomain,
    DomainUpdate,
    DomainValidation,
    SpamReport,
)

BILLING_SCOPES = ["billing.delete", "billing.read", "billing.update"]


class SendGridClient:
    """
    High-level SendGrid v3 API client with typed methods.

    Example:
        client = SendGridClient()

        key = client.api_keys.create("Deploy key", ["mail.send"])
        for report in client.spam_reports.iterate():
            print(report.email)
        validation = client.domains.validate(domain_id)

    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: Transport | None = None,
    ):
        """
        Initialize the SendGrid client.

        Args:
            api_key: SendGrid API key (or SENDGRID_API_KEY env var)
            base_url: API base URL (or SENDGRID_BASE_URL env var)
            timeout: Request timeout in seconds
            transport: HTTP transport override

        """
        self._client = APIClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

        # Sub-clients for different API areas
        self.api_keys = ApiKeyOperations(self._client)
        self.scopes = ScopeOperations(self._client)
        self.spam_reports = SpamReportOperations(self._client)
        self.suppressions = SuppressionOperations(self._client)
        self.domains = DomainOperations(self._client)

    @property
    def api(self) -> APIClient:
        """The underlying dispatch client."""
        return self._client


# =============================================================================
# API Keys
# =============================================================================


class ApiKeyOperations:
    """Operations on API keys."""

    LIST = Endpoint("GET", "/v3/api_keys")
    GET = Endpoint("GET", "/v3/api_keys/{key_id}")
    CREATE = Endpoint("POST", "/v3/api_keys")
    REPLACE = Endpoint("PUT", "/v3/api_keys/{key_id}")
    RENAME = Endpoint("PATCH", "/v3/api_keys/{key_id}")
    DELETE = Endpoint("DELETE", "/v3/api_keys/{key_id}")

    def __init__(self, client: APIClient):
        self._client = client

    def list(self, cancellation: CancellationToken | None = None) -> list[ApiKey]:
        """List all API keys (names and ids only)."""
        return self._client.execute(
            self.LIST,
            parser=ApiKey.from_dict,
            shape=ResponseShape.ENVELOPE,
            cancellation=cancellation,
        ).unwrap()

    def get(self, key_id: str, cancellation: CancellationToken | None = None) -> ApiKey:
        """
        Get an API key.

        Args:
            key_id: The API key id

        Returns:
            ApiKey with its scopes

        """
        return self._client.execute(
            self.GET,
            path_params={"key_id": key_id},
            parser=ApiKey.from_dict,
            cancellation=cancellation,
        ).unwrap()

    def create(
        self,
        name: str,
        scopes: Iterable[str] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> ApiKey:
        """
        Create an API key.

        Args:
            name: Display name
            scopes: Permissions; SendGrid grants full access when omitted

        Returns:
            ApiKey including the secret, which is only shown once

        """
        if not name:
            raise ValidationError("API key name is required", field="name")
        body = {"name": name, "scopes": builtins.list(scopes) if scopes is not None else None}
        return self._client.execute(
            self.CREATE,
            body=body,
            parser=ApiKey.from_dict,
            cancellation=cancellation,
        ).unwrap()

    def create_with_billing_permissions(self, name: str, cancellation: CancellationToken | None = None) -> ApiKey:
        """Create an API key limited to the billing scopes."""
        return self.create(name, BILLING_SCOPES, cancellation=cancellation)

    def create_with_all_permissions(self, name: str, cancellation: CancellationToken | None = None) -> ApiKey:
        """Create an API key holding every scope the current user has."""
        scopes = ScopeOperations(self._client).list(cancellation=cancellation)
        return self.create(name, scopes, cancellation=cancellation)

    def update(
        self,
        key_id: str,
        name: str,
        scopes: Iterable[str] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> ApiKey:
        """
        Update an API key.

        With scopes, the key is replaced (PUT) and its scopes overwritten;
        without, only the name changes (PATCH).
        """
        if scopes is not None:
            endpoint = self.REPLACE
            body: dict[str, Any] = {"name": name, "scopes": builtins.list(scopes)}
        else:
            endpoint = self.RENAME
            body = {"name": name}
        return self._client.execute(
            endpoint,
            path_params={"key_id": key_id},
            body=body,
            parser=ApiKey.from_dict,
            cancellation=cancellation,
        ).unwrap()

    def delete(self, key_id: str, cancellation: CancellationToken | None = None) -> bool:
        """Revoke an API key."""
        self._client.execute(
            self.DELETE,
            path_params={"key_id": key_id},
            shape=ResponseShape.NONE,
            cancellation=cancellation,
        ).unwrap()
        return True


# =============================================================================
# Scopes
# =============================================================================


class ScopeOperations:
    """Permissions held by the authenticated user."""

    LIST = Endpoint("GET", "/v3/scopes")

    def __init__(self, client: APIClient):
        self._client = client

    def list(self, cancellation: CancellationToken | None = None) -> list[str]:
        result = self._client.execute(self.LIST, cancellation=cancellation).unwrap()
        return (result or {}).get("scopes") or []


# =============================================================================
# Spam Reports
# =============================================================================


class SpamReportOperations:
    """Recipients who reported messages as spam."""

    LIST = Endpoint("GET", "/v3/suppression/spam_reports")
    GET = Endpoint("GET", "/v3/suppression/spam_reports/{email}")
    DELETE_MANY = Endpoint("DELETE", "/v3/suppression/spam_reports")
    DELETE = Endpoint("DELETE", "/v3/suppression/spam_reports/{email}")

    def __init__(self, client: APIClient):
        self._client = client

    def get(self, email: str, cancellation: CancellationToken | None = None) -> list[SpamReport]:
        """Get the spam reports filed by one address."""
        return self._client.execute(
            self.GET,
            path_params={"email": email},
            parser=SpamReport.from_dict,
            shape=ResponseShape.ARRAY,
            cancellation=cancellation,
        ).unwrap()

    def list(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int = 25,
        offset: int = 0,
        cancellation: CancellationToken | None = None,
    ) -> list[SpamReport]:
        """
        List one page of spam reports.

        Args:
            start_date: Only reports created at or after this time
            end_date: Only reports created at or before this time
            limit: Page size
            offset: Number of reports to skip

        """
        return self._client.execute(
            self.LIST,
            query={"start_time": start_date, "end_time": end_date, "limit": limit, "offset": offset},
            parser=SpamReport.from_dict,
            shape=ResponseShape.ARRAY,
            cancellation=cancellation,
        ).unwrap()

    def iterate(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        page_size: int = 500,
        cancellation: CancellationToken | None = None,
    ) -> Paginator[SpamReport]:
        """Iterate lazily over all spam reports."""
        return self._client.paginate(
            self.LIST.path,
            query={"start_time": start_date, "end_time": end_date},
            page_size=page_size,
            parser=SpamReport.from_dict,
            shape=ResponseShape.ARRAY,
            cancellation=cancellation,
        )

    def delete(self, email: str, cancellation: CancellationToken | None = None) -> bool:
        """Delete the spam report of one address."""
        self._client.execute(
            self.DELETE,
            path_params={"email": email},
            shape=ResponseShape.NONE,
            cancellation=cancellation,
        ).unwrap()
        return True

    def delete_multiple(self, emails: Iterable[str], cancellation: CancellationToken | None = None) -> bool:
        """Delete the spam reports of several addresses."""
        addresses = builtins.list(emails)
        if not addresses:
            raise ValidationError("At least one email address is required", field="emails")
        self._client.execute(
            self.DELETE_MANY,
            body={"emails": addresses},
            shape=ResponseShape.NONE,
            cancellation=cancellation,
        ).unwrap()
        return True

    def delete_all(self, cancellation: CancellationToken | None = None) -> bool:
        """Delete every spam report."""
        self._client.execute(
            self.DELETE_MANY,
            body={"delete_all": True},
            shape=ResponseShape.NONE,
            cancellation=cancellation,
        ).unwrap()
        return True


# =============================================================================
# Unsubscribe Group Suppressions
# =============================================================================


class SuppressionOperations:
    """Addresses suppressed from an unsubscribe group."""

    LIST = Endpoint("GET", "/v3/asm/groups/{group_id}/suppressions")
    ADD = Endpoint("POST", "/v3/asm/groups/{group_id}/suppressions")
    REMOVE = Endpoint("DELETE", "/v3/asm/groups/{group_id}/suppressions/{email}")

    def __init__(self, client: APIClient):
        self._client = client

    def list(self, group_id: int, cancellation: CancellationToken | None = None) -> list[str]:
        """List the suppressed addresses of a group."""
        return self._client.execute(
            self.LIST,
            path_params={"group_id": group_id},
            shape=ResponseShape.ARRAY,
            cancellation=cancellation,
        ).unwrap()

    def add(
        self,
        group_id: int,
        emails: Iterable[str],
        cancellation: CancellationToken | None = None,
    ) -> builtins.list[str]:
        """
        Suppress addresses for a group.

        Returns:
            The addresses SendGrid recorded

        """
        addresses = builtins.list(emails)
        if not addresses:
            raise ValidationError("At least one email address is required", field="emails")
        result = self._client.execute(
            self.ADD,
            path_params={"group_id": group_id},
            body={"recipient_emails": addresses},
            cancellation=cancellation,
        ).unwrap()
        return (result or {}).get("recipient_emails") or []

    def remove(self, group_id: int, email: str, cancellation: CancellationToken | None = None) -> bool:
        """Remove one address from a group's suppressions."""
        self._client.execute(
            self.REMOVE,
            path_params={"group_id": group_id, "email": email},
            shape=ResponseShape.NONE,
            cancellation=cancellation,
        ).unwrap()
        return True

    def is_suppressed(self, group_id: int, email: str, cancellation: CancellationToken | None = None) -> bool:
        """Check whether an address is suppressed for a group."""
        return email.lower() in {e.lower() for e in self.list(group_id, cancellation=cancellation)}


# =============================================================================
# Authenticated Domains
# =============================================================================


class DomainOperations:
    """Domain authentication and DNS validation records."""

    LIST = Endpoint("GET", "/v3/whitelabel/domains")
    GET = Endpoint("GET", "/v3/whitelabel/domains/{domain_id}")
    UPDATE = Endpoint("PATCH", "/v3/whitelabel/domains/{domain_id}")
    VALIDATE = Endpoint("POST", "/v3/whitelabel/domains/{domain_id}/validate")

    def __init__(self, client: APIClient):
        self._client = client

    def list(
        self,
        limit: int = 50,
        offset: int = 0,
        domain: str | None = None,
        cancellation: CancellationToken | None = None,
    ) -> list[AuthenticatedDomain]:
        """List one page of authenticated domains."""
        return self._client.execute(
            self.LIST,
            query={"limit": limit, "offset": offset, "domain": domain},
            parser=AuthenticatedDomain.from_dict,
            shape=ResponseShape.ARRAY,
            cancellation=cancellation,
        ).unwrap()

    def iterate(
        self,
        page_size: int = 50,
        cancellation: CancellationToken | None = None,
    ) -> Paginator[AuthenticatedDomain]:
        """Iterate lazily over all authenticated domains."""
        return self._client.paginate(
            self.LIST.path,
            page_size=page_size,
            parser=AuthenticatedDomain.from_dict,
            shape=ResponseShape.ARRAY,
            cancellation=cancellation,
        )

    def get(self, domain_id: int, cancellation: CancellationToken | None = None) -> AuthenticatedDomain:
        """Get a domain with its DNS records."""
        return self._client.execute(
            self.GET,
            path_params={"domain_id": domain_id},
            parser=AuthenticatedDomain.from_dict,
            cancellation=cancellation,
        ).unwrap()

    def update(
        self,
        domain_id: int,
        default: Any = None,
        custom_spf: Any = None,
        cancellation: CancellationToken | None = None,
    ) -> AuthenticatedDomain:
        """
        Partially update a domain.

        Args:
            domain_id: The domain id
            default: Make this the default sending domain (NULL sends null)
            custom_spf: Use a custom SPF record (NULL sends null)

        Fields left as None are not sent.
        """
        update = DomainUpdate(default=default, custom_spf=custom_spf)
        if update.default is None and update.custom_spf is None:
            raise ValidationError("Nothing to update: pass default or custom_spf")
        return self._client.execute(
            self.UPDATE,
            path_params={"domain_id": domain_id},
            body=update,
            parser=AuthenticatedDomain.from_dict,
            cancellation=cancellation,
        ).unwrap()

    def validate(self, domain_id: int, cancellation: CancellationToken | None = None) -> DomainValidation:
        """Ask SendGrid to check the domain's DNS records."""
        return self._client.execute(
            self.VALIDATE,
            path_params={"domain_id": domain_id},
            parser=DomainValidation.from_dict,
            cancellation=cancellation,
        ).unwrap()
