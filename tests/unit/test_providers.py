"""Unit tests for DNS providers."""

import json

import httpx
import pytest
import respx

from flarehook.config import Credentials
from flarehook.exceptions import ConfigError, ProviderError
from flarehook.providers.base import CHALLENGE_TTL, DnsProvider
from flarehook.providers.cloudflare import API_URL, CloudflareProvider

ZONE_ID = "023e105f4ecef8ad9ca31a8372d0c353"
RECORD_ID = "372e67954025e0ba6aaa6d586b9e0b59"
RECORD_NAME = "_acme-challenge.example.com"

ZONES_URL = f"{API_URL}/zones"
RECORDS_URL = f"{API_URL}/zones/{ZONE_ID}/dns_records"


def zone_json(name="example.com"):
    return {
        "id": ZONE_ID,
        "name": name,
        "status": "active",
        "paused": False,
        "type": "full",
        "name_servers": ["ada.ns.cloudflare.com", "bob.ns.cloudflare.com"],
    }


def record_json(content="token", record_id=RECORD_ID):
    return {
        "id": record_id,
        "type": "TXT",
        "name": RECORD_NAME,
        "content": content,
        "ttl": CHALLENGE_TTL,
        "proxied": False,
        "zone_id": ZONE_ID,
        "zone_name": "example.com",
    }


def envelope(result, success=True, errors=None):
    return {"success": success, "errors": errors or [], "messages": [], "result": result}


@pytest.fixture
def cloudflare():
    provider = CloudflareProvider(Credentials(api_token="secret-token"))
    yield provider
    provider.close()


class TestDnsProviderInterface:
    """Tests for DnsProvider abstract interface."""

    def test_provider_implements_interface(self, cloudflare):
        """CloudflareProvider should implement DnsProvider interface."""
        assert isinstance(cloudflare, DnsProvider)

    def test_context_manager_closes(self, make_provider):
        """Leaving the with-block should close the provider."""
        with make_provider() as provider:
            assert provider.closed is False

        assert provider.closed is True


class TestCloudflareAuth:
    """Tests for request authentication."""

    @respx.mock
    def test_token_sent_as_bearer(self, cloudflare):
        route = respx.get(ZONES_URL).mock(
            return_value=httpx.Response(200, json=envelope([zone_json()]))
        )

        cloudflare.find_zone("example.com")

        assert route.calls.last.request.headers["Authorization"] == "Bearer secret-token"

    @respx.mock
    def test_global_key_headers(self):
        route = respx.get(ZONES_URL).mock(
            return_value=httpx.Response(200, json=envelope([zone_json()]))
        )
        credentials = Credentials(api_email="admin@example.com", api_key="global-key")

        with CloudflareProvider(credentials) as provider:
            provider.find_zone("example.com")

        headers = route.calls.last.request.headers
        assert headers["X-Auth-Email"] == "admin@example.com"
        assert headers["X-Auth-Key"] == "global-key"
        assert "Authorization" not in headers

    def test_incomplete_credentials_rejected(self):
        with pytest.raises(ConfigError):
            CloudflareProvider(Credentials(api_email="admin@example.com"))


class TestCloudflareFindZone:
    """Unit tests for CloudflareProvider.find_zone()."""

    @respx.mock
    def test_find_zone_exact_match(self, cloudflare):
        """Should return the zone and ask for active exact matches only."""
        route = respx.get(ZONES_URL).mock(
            return_value=httpx.Response(200, json=envelope([zone_json()]))
        )

        zone = cloudflare.find_zone("example.com")

        assert zone.id == ZONE_ID
        assert zone.name_servers == ["ada.ns.cloudflare.com", "bob.ns.cloudflare.com"]
        params = route.calls.last.request.url.params
        assert params["name"] == "example.com"
        assert params["status"] == "active"
        assert params["per_page"] == "1"
        assert params["match"] == "all"

    @respx.mock
    def test_find_zone_no_match(self, cloudflare):
        """An empty result list means no such zone."""
        respx.get(ZONES_URL).mock(return_value=httpx.Response(200, json=envelope([])))

        assert cloudflare.find_zone("other.com") is None

    @respx.mock
    def test_find_zone_api_error(self, cloudflare):
        """success=false should raise ProviderError with the API errors."""
        respx.get(ZONES_URL).mock(
            return_value=httpx.Response(
                403,
                json=envelope(
                    None, success=False, errors=[{"code": 9109, "message": "Invalid access token"}]
                ),
            )
        )

        with pytest.raises(ProviderError) as exc_info:
            cloudflare.find_zone("example.com")

        assert exc_info.value.status_code == 403
        assert "9109: Invalid access token" in str(exc_info.value)

    @respx.mock
    def test_non_json_response(self, cloudflare):
        respx.get(ZONES_URL).mock(return_value=httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(ProviderError, match="Bad Gateway"):
            cloudflare.find_zone("example.com")

    @respx.mock
    def test_transport_error(self, cloudflare):
        respx.get(ZONES_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(ProviderError, match="request failed") as exc_info:
            cloudflare.find_zone("example.com")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @respx.mock
    def test_unexpected_shape(self, cloudflare):
        """A successful envelope that does not decode should raise ProviderError."""
        respx.get(ZONES_URL).mock(
            return_value=httpx.Response(200, json=envelope([{"name": "no-id.com"}]))
        )

        with pytest.raises(ProviderError, match="Unexpected Cloudflare response"):
            cloudflare.find_zone("example.com")


class TestCloudflareRecords:
    """Unit tests for challenge record management."""

    @respx.mock
    def test_list_txt_records(self, cloudflare):
        route = respx.get(RECORDS_URL).mock(
            return_value=httpx.Response(
                200, json=envelope([record_json("a"), record_json("b", "other-id")])
            )
        )

        records = cloudflare.list_txt_records(ZONE_ID, RECORD_NAME)

        assert [r.content for r in records] == ["a", "b"]
        params = route.calls.last.request.url.params
        assert params["type"] == "TXT"
        assert params["name"] == RECORD_NAME
        assert params["per_page"] == "100"

    @respx.mock
    def test_create_txt_record(self, cloudflare):
        route = respx.post(RECORDS_URL).mock(
            return_value=httpx.Response(200, json=envelope(record_json()))
        )

        record = cloudflare.create_txt_record(ZONE_ID, RECORD_NAME, "token")

        assert record.id == RECORD_ID
        body = json.loads(route.calls.last.request.content)
        assert body == {"type": "TXT", "name": RECORD_NAME, "content": "token", "ttl": 120}

    @respx.mock
    def test_create_txt_record_rejected(self, cloudflare):
        respx.post(RECORDS_URL).mock(
            return_value=httpx.Response(
                400,
                json=envelope(
                    None,
                    success=False,
                    errors=[{"code": 81057, "message": "Record already exists."}],
                ),
            )
        )

        with pytest.raises(ProviderError, match="Failed to create challenge record"):
            cloudflare.create_txt_record(ZONE_ID, RECORD_NAME, "token")

    @respx.mock
    def test_delete_record(self, cloudflare):
        route = respx.delete(f"{RECORDS_URL}/{RECORD_ID}").mock(
            return_value=httpx.Response(200, json=envelope({"id": RECORD_ID}))
        )

        assert cloudflare.delete_record(ZONE_ID, RECORD_ID) == RECORD_ID
        assert route.called

    @respx.mock
    def test_delete_record_not_found(self, cloudflare):
        respx.delete(f"{RECORDS_URL}/{RECORD_ID}").mock(
            return_value=httpx.Response(
                404,
                json=envelope(
                    None, success=False, errors=[{"code": 81044, "message": "Not found"}]
                ),
            )
        )

        with pytest.raises(ProviderError) as exc_info:
            cloudflare.delete_record(ZONE_ID, RECORD_ID)

        assert exc_info.value.status_code == 404
