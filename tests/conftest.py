"""Pytest fixtures for the flarehook test suite."""

import logging
import logging.handlers
import os
import threading
from collections.abc import Callable, Generator, Iterable
from itertools import count

import pytest

import flarehook._logging
from flarehook.models import DnsRecord, Zone
from flarehook.providers.base import CHALLENGE_TTL, DnsProvider
from flarehook.resolver import Endpoint

# Cloudflare integration settings (tests skip when unset)
CF_API_TOKEN = os.environ.get("CF_API_TOKEN")
FLAREHOOK_TEST_ZONE = os.environ.get("FLAREHOOK_TEST_ZONE")


@pytest.fixture(scope="session")
def cloudflare_api_token() -> str:
    """Return the Cloudflare API token, skipping when not configured."""
    if not CF_API_TOKEN:
        pytest.skip("CF_API_TOKEN not set")
    return CF_API_TOKEN


@pytest.fixture(scope="session")
def cloudflare_test_zone() -> str:
    """Return the Cloudflare zone integration tests may write to."""
    if not FLAREHOOK_TEST_ZONE:
        pytest.skip("FLAREHOOK_TEST_ZONE not set")
    return FLAREHOOK_TEST_ZONE


@pytest.fixture(autouse=True)
def _reset_flarehook_logger() -> Generator[None]:
    """Undo logging changes made by CLI invocations."""
    root = logging.getLogger("flarehook")
    level = root.level
    yield
    if flarehook._logging._cli_handler is not None:
        root.removeHandler(flarehook._logging._cli_handler)
        flarehook._logging._cli_handler = None
    root.setLevel(level)


# =============================================================================
# Resolver fakes
# =============================================================================


class FakeTxt:
    """Stand-in for a dnspython TXT rdata."""

    def __init__(self, value: str) -> None:
        self.strings = (value.encode(),)


class FakeResolver:
    """Stand-in for a dnspython Resolver pinned to one nameserver.

    Each entry of ``answers`` is served by one query, either a list of TXT
    values or an exception to raise. The last entry repeats.

    Args:
        address: Nameserver address.
        answers: Sequence of answers.
        hang: When set, queries block until ``release`` is set (or the
            query lifetime passes) before answering.
    """

    def __init__(
        self,
        address: str,
        answers: Iterable[list[str] | BaseException],
        hang: bool = False,
    ) -> None:
        self.nameservers = [address]
        self._answers = list(answers)
        self.hang = hang
        self.release = threading.Event()
        self.queries: list[tuple[str, str, bool]] = []

    def resolve(
        self,
        qname: str,
        rdtype: str = "A",
        tcp: bool = False,
        lifetime: float | None = None,
    ) -> list[FakeTxt]:
        self.queries.append((qname, rdtype, tcp))
        if self.hang:
            self.release.wait(5)
        answer = self._answers.pop(0) if len(self._answers) > 1 else self._answers[0]
        if isinstance(answer, BaseException):
            raise answer
        return [FakeTxt(value) for value in answer]


@pytest.fixture
def make_endpoint() -> Callable[..., Endpoint]:
    """Build NS1/NS2 endpoints backed by a FakeResolver.

    Usage:
        ns1 = make_endpoint("192.0.2.1", [["token"]])
        ns1.resolver.queries  # queries received so far
    """

    def factory(
        address: str,
        answers: Iterable[list[str] | BaseException],
        hang: bool = False,
    ) -> Endpoint:
        return Endpoint(address, address, resolver=FakeResolver(address, answers, hang=hang))

    return factory


# =============================================================================
# Provider fake
# =============================================================================


class InMemoryProvider(DnsProvider):
    """DNS provider holding zones and records in memory.

    Args:
        zones: Zone name -> nameserver list.
    """

    def __init__(self, zones: dict[str, list[str]] | None = None) -> None:
        self._ids = count(1)
        self.zones = {
            name: Zone(id=f"zone-{name}", name=name, status="active", name_servers=ns)
            for name, ns in (zones or {}).items()
        }
        self.records: dict[str, DnsRecord] = {}
        self.zone_queries: list[str] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def find_zone(self, name: str) -> Zone | None:
        self.zone_queries.append(name)
        return self.zones.get(name)

    def list_txt_records(self, zone_id: str, name: str) -> list[DnsRecord]:
        return [r for r in self.records.values() if r.zone_id == zone_id and r.name == name]

    def create_txt_record(
        self, zone_id: str, name: str, content: str, ttl: int = CHALLENGE_TTL
    ) -> DnsRecord:
        record = DnsRecord(
            id=f"rec-{next(self._ids)}",
            type="TXT",
            name=name,
            content=content,
            ttl=ttl,
            zone_id=zone_id,
        )
        self.records[record.id] = record
        return record

    def delete_record(self, zone_id: str, record_id: str) -> str:
        del self.records[record_id]
        return record_id


@pytest.fixture
def provider() -> InMemoryProvider:
    """In-memory provider with example.com registered on two nameservers."""
    return InMemoryProvider({"example.com": ["ada.ns.cloudflare.com", "bob.ns.cloudflare.com"]})


@pytest.fixture
def make_provider() -> type[InMemoryProvider]:
    """Return the InMemoryProvider class for custom zone layouts."""
    return InMemoryProvider


# =============================================================================
# Log capture
# =============================================================================


class LogCapture:
    """Helper class to capture and inspect log records."""

    def __init__(self, handler: logging.handlers.MemoryHandler) -> None:
        self._handler = handler

    @property
    def records(self) -> list[logging.LogRecord]:
        """Get all captured log records."""
        return self._handler.buffer

    def get_records(
        self, level: int | None = None, name: str | None = None
    ) -> list[logging.LogRecord]:
        """Get log records filtered by level and/or logger name.

        Args:
            level: Filter by log level (e.g., logging.INFO).
            name: Filter by logger name prefix (e.g., "flarehook.poller").

        Returns:
            List of matching log records.
        """
        records = self.records
        if level is not None:
            records = [r for r in records if r.levelno == level]
        if name is not None:
            records = [r for r in records if r.name.startswith(name)]
        return records

    def get_messages(self, level: int | None = None, name: str | None = None) -> list[str]:
        """Get log messages filtered by level and/or logger name."""
        return [r.getMessage() for r in self.get_records(level, name)]

    def clear(self) -> None:
        """Clear all captured log records."""
        self._handler.buffer.clear()


@pytest.fixture
def log_capture() -> Generator[LogCapture]:
    """Capture logs from the flarehook package during a test.

    Usage:
        def test_something(log_capture):
            # do something that logs
            assert "Zone found" in log_capture.get_messages(logging.INFO)
    """
    handler = logging.handlers.MemoryHandler(capacity=1000)
    handler.setLevel(logging.DEBUG)

    flarehook_logger = logging.getLogger("flarehook")
    original_level = flarehook_logger.level
    flarehook_logger.setLevel(logging.DEBUG)
    flarehook_logger.addHandler(handler)

    try:
        yield LogCapture(handler)
    finally:
        flarehook_logger.removeHandler(handler)
        flarehook_logger.setLevel(original_level)
        handler.close()
