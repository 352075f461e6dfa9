"""Cloudflare provider for ACME DNS-01 challenges."""

from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from flarehook._logging import get_domain_extra, get_logger
from flarehook.config import Credentials
from flarehook.exceptions import ProviderError
from flarehook.models import (
    ApiResponse,
    DeleteResponse,
    DnsRecord,
    RecordListResponse,
    RecordResponse,
    Zone,
    ZoneListResponse,
    ZoneStatus,
)
from flarehook.providers.base import CHALLENGE_TTL, DnsProvider

logger = get_logger(__name__)

API_URL = "https://api.cloudflare.com/client/v4"
RECORDS_PER_PAGE = 100

ResponseT = TypeVar("ResponseT", bound=ApiResponse)


class CloudflareProvider(DnsProvider):
    """DNS provider for zones hosted on Cloudflare.

    Talks to the Cloudflare v4 REST API to look up zones and to manage the
    challenge TXT records.

    Args:
        credentials: API token, or account email plus global API key.
        api_url: Base URL of the Cloudflare API.
        timeout: HTTP request timeout in seconds (default: 30).
        http_client: Pre-configured client (tests); built from the
            credentials when omitted.
    """

    def __init__(
        self,
        credentials: Credentials,
        api_url: str = API_URL,
        timeout: int = 30,
        http_client: httpx.Client | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._http = http_client or httpx.Client(
            headers={"Content-Type": "application/json", **credentials.auth_headers()},
            timeout=timeout,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()

    def _request(
        self,
        method: str,
        path: str,
        model: type[ResponseT],
        action: str,
        **kwargs: Any,
    ) -> ResponseT:
        """Send an API request and decode the response envelope.

        Args:
            method: HTTP method.
            path: Path below the API base URL.
            model: Envelope model to decode into.
            action: What is being attempted (for error messages).
            **kwargs: Passed to httpx (params, json).

        Returns:
            The decoded envelope, with ``success`` true.

        Raises:
            ProviderError: On transport errors, non-JSON bodies or API errors.
        """
        try:
            response = self._http.request(method, f"{self.api_url}/{path}", **kwargs)
        except httpx.HTTPError as e:
            raise ProviderError(f"Cloudflare request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            raise ProviderError(
                f"Failed to decode Cloudflare response (HTTP {response.status_code}): "
                f"{response.text or 'empty body'}",
                status_code=response.status_code,
            ) from None

        if not isinstance(data, dict) or not data.get("success"):
            error = ProviderError.from_response(
                action, data if isinstance(data, dict) else {}, response.status_code
            )
            logger.error(
                "Cloudflare API error",
                extra={"action": action, "status_code": response.status_code},
            )
            raise error

        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ProviderError(
                f"Unexpected Cloudflare response while trying to {action}: {e}",
                status_code=response.status_code,
            ) from e

    def find_zone(self, name: str) -> Zone | None:
        """Look up an active zone by exact name (one result per page)."""
        body = self._request(
            "GET",
            "zones",
            ZoneListResponse,
            "look up zone",
            params={
                "name": name,
                "status": ZoneStatus.ACTIVE.value,
                "page": 1,
                "per_page": 1,
                "match": "all",
            },
        )
        if not body.result:
            return None
        return body.result[0]

    def list_txt_records(self, zone_id: str, name: str) -> list[DnsRecord]:
        """List TXT records named ``name`` in a zone."""
        body = self._request(
            "GET",
            f"zones/{zone_id}/dns_records",
            RecordListResponse,
            "list challenge records",
            params={
                "type": "TXT",
                "name": name,
                "page": 1,
                "per_page": RECORDS_PER_PAGE,
                "match": "all",
            },
        )
        return body.result or []

    def create_txt_record(
        self, zone_id: str, name: str, content: str, ttl: int = CHALLENGE_TTL
    ) -> DnsRecord:
        """Create a TXT record in a zone."""
        body = self._request(
            "POST",
            f"zones/{zone_id}/dns_records",
            RecordResponse,
            "create challenge record",
            json={"type": "TXT", "name": name, "content": content, "ttl": ttl},
        )
        if body.result is None:
            raise ProviderError("Cloudflare did not return the created record")
        logger.info(
            "TXT record created",
            extra={"record_name": name, "record_id": body.result.id, **get_domain_extra()},
        )
        return body.result

    def delete_record(self, zone_id: str, record_id: str) -> str:
        """Delete a record from a zone."""
        body = self._request(
            "DELETE",
            f"zones/{zone_id}/dns_records/{record_id}",
            DeleteResponse,
            "delete challenge record",
        )
        deleted = body.result.id if body.result else record_id
        logger.info(
            "TXT record deleted",
            extra={"record_id": deleted, **get_domain_extra()},
        )
        return deleted
