"""Dual authoritative nameserver TXT lookups.

TXT queries are sent straight to the zone's authoritative nameservers,
never through a recursive or caching resolver, so the answers reflect what
the provider is serving right now. Both servers are queried concurrently
and their answers reconciled: a disagreement means the zone is still
propagating between its two servers.
"""

import ipaddress
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor, wait

import dns.exception
import dns.resolver

from flarehook._logging import Timer, get_domain_extra, get_logger
from flarehook.exceptions import (
    EndpointError,
    EndpointTimeoutError,
    InconsistentRecordsError,
    NameserverResolutionError,
)
from flarehook.models import NameserverPair

logger = get_logger(__name__)

DNS_PORT = 53
LOOKUP_TIMEOUT = 10.0  # seconds, shared by both queries of one lookup


def resolve_nameserver(hostname: str) -> str:
    """Resolve a nameserver hostname to an IPv4 address.

    Uses the system's configured resolver; this is the only query that
    does not go to an authoritative server. IP literals are returned as-is.

    Args:
        hostname: Nameserver hostname (e.g. "ada.ns.cloudflare.com").

    Returns:
        The first address found.

    Raises:
        NameserverResolutionError: If the hostname has no address.
    """
    try:
        return str(ipaddress.ip_address(hostname))
    except ValueError:
        pass

    try:
        answer = dns.resolver.resolve(hostname, "A")
    except (dns.exception.DNSException, OSError) as e:
        raise NameserverResolutionError(hostname, str(e) or type(e).__name__) from e

    addresses = [rdata.address for rdata in answer]
    if not addresses:
        raise NameserverResolutionError(hostname, "no A records")
    logger.debug(
        "Nameserver resolved",
        extra={"nameserver": hostname, "address": addresses[0]},
    )
    return addresses[0]


def authoritative_resolver(
    address: str,
    port: int = DNS_PORT,
    timeout: float = LOOKUP_TIMEOUT,
) -> dns.resolver.Resolver:
    """Create a resolver pinned to a single nameserver address.

    The resolver ignores /etc/resolv.conf (``configure=False``) and has no
    search list, so every query goes to ``address`` and nowhere else.

    Args:
        address: IP address of the authoritative nameserver.
        port: Nameserver port.
        timeout: Per-query lifetime in seconds.

    Returns:
        A configured dnspython Resolver.
    """
    resolver = dns.resolver.Resolver(configure=False)
    # port first: nameservers pick up the resolver's port when assigned
    resolver.port = port
    resolver.nameservers = [address]
    resolver.timeout = timeout
    resolver.lifetime = timeout
    return resolver


class Endpoint:
    """One authoritative nameserver, queried directly.

    Args:
        hostname: Nameserver hostname, used in logs and errors.
        address: IP address the queries are sent to.
        port: Nameserver port.
        timeout: Default query lifetime in seconds.
        resolver: Resolving primitive; a resolver pinned to ``address`` is
            built when omitted.
    """

    def __init__(
        self,
        hostname: str,
        address: str,
        port: int = DNS_PORT,
        timeout: float = LOOKUP_TIMEOUT,
        resolver: dns.resolver.Resolver | None = None,
    ):
        self.hostname = hostname
        self.address = address
        self.port = port
        self.resolver = resolver or authoritative_resolver(address, port, timeout)

    def __repr__(self) -> str:
        return f"Endpoint({self.hostname!r}, {self.address!r})"

    def query_txt(
        self,
        name: str,
        timeout: float = LOOKUP_TIMEOUT,
        tcp: bool = False,
    ) -> list[str]:
        """Query the nameserver for the TXT values of a name.

        Character-strings of a single TXT record are concatenated into one
        value. Bytes that are not valid UTF-8 are replaced, so any answer
        still compares by content.

        Args:
            name: Fully-qualified name to query.
            timeout: Query lifetime in seconds.
            tcp: Use TCP instead of UDP.

        Returns:
            TXT values in answer order.

        Raises:
            EndpointError: Typed by failure; see EndpointError.from_dns_exception.
        """
        try:
            answer = self.resolver.resolve(name, "TXT", tcp=tcp, lifetime=timeout)
        except (dns.exception.DNSException, OSError) as e:
            raise EndpointError.from_dns_exception(e, self.hostname, name) from e
        return [b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answer]


def endpoints_for(
    pair: NameserverPair,
    timeout: float = LOOKUP_TIMEOUT,
) -> tuple[Endpoint, Endpoint]:
    """Build the NS1/NS2 endpoints for a zone's nameserver pair.

    Raises:
        NameserverResolutionError: If either hostname cannot be resolved.
    """
    return (
        Endpoint(pair.primary, resolve_nameserver(pair.primary), timeout=timeout),
        Endpoint(pair.secondary, resolve_nameserver(pair.secondary), timeout=timeout),
    )


def same_values(first: list[str], second: list[str]) -> bool:
    """Check two TXT answers hold the same values, ignoring order.

    Duplicates count: ["a", "a", "b"] and ["a", "b", "b"] differ.
    """
    if len(first) != len(second):
        return False
    return Counter(first) == Counter(second)


def lookup_compare_txt(
    endpoint1: Endpoint,
    endpoint2: Endpoint,
    name: str,
    timeout: float = LOOKUP_TIMEOUT,
    tcp: bool = False,
) -> list[str]:
    """Query both nameservers concurrently and reconcile their answers.

    Both queries share one deadline. If it passes, the call returns at the
    deadline; the outstanding query is abandoned rather than waited for.

    Args:
        endpoint1: NS1.
        endpoint2: NS2.
        name: Fully-qualified name to query.
        timeout: Shared deadline in seconds.
        tcp: Use TCP instead of UDP for both queries.

    Returns:
        The TXT values (in NS1's order) when both answers agree.

    Raises:
        EndpointTimeoutError: A nameserver did not answer before the deadline.
        EndpointError: A query failed; NS1's failure is reported first.
        InconsistentRecordsError: Both answered, with different values.
    """
    executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="flarehook-ns")
    try:
        with Timer() as timer:
            futures: tuple[Future[list[str]], Future[list[str]]] = (
                executor.submit(endpoint1.query_txt, name, timeout, tcp),
                executor.submit(endpoint2.query_txt, name, timeout, tcp),
            )
            wait(futures, timeout=timeout)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    results: list[list[str]] = []
    for index, (future, endpoint) in enumerate(zip(futures, (endpoint1, endpoint2)), start=1):
        if not future.done():
            raise EndpointTimeoutError(
                endpoint.hostname, name, f"NS{index} did not respond in {timeout}s"
            )
        results.append(future.result())

    first, second = results
    logger.debug(
        "Authoritative TXT lookup complete",
        extra={
            "record_name": name,
            "ns1_count": len(first),
            "ns2_count": len(second),
            "elapsed_ms": round(timer.elapsed_ms, 1),
            **get_domain_extra(),
        },
    )

    if not same_values(first, second):
        raise InconsistentRecordsError(name, first, second)
    return first
