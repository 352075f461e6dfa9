"""Locate the provider zone that manages a domain."""

from collections.abc import Iterator
from typing import TYPE_CHECKING

from flarehook._logging import get_domain_extra, get_logger
from flarehook.exceptions import InsufficientNameserversError, ZoneNotFoundError
from flarehook.models import NameserverPair, ZoneMatch

if TYPE_CHECKING:
    from flarehook.providers.base import DnsProvider

logger = get_logger(__name__)


def parent_domains(domain: str) -> Iterator[str]:
    """Yield the domain and its parents, stopping before a bare TLD.

    The domain is normalized first (lowercase, no trailing dot, no
    wildcard prefix). ``a.b.example.com`` yields ``a.b.example.com``,
    ``b.example.com`` and ``example.com``; a single-label domain is
    yielded once.
    """
    candidate = domain.strip().rstrip(".").lower()
    if candidate.startswith("*."):
        candidate = candidate[2:]
    while True:
        yield candidate
        labels = candidate.split(".")
        if len(labels) <= 2:
            return
        candidate = ".".join(labels[1:])


def candidate_zones(domain: str) -> list[str]:
    """List the zone names tried for a domain, most specific first."""
    return list(parent_domains(domain))


def locate_zone(provider: "DnsProvider", domain: str) -> ZoneMatch:
    """Find the most specific active zone managing a domain.

    Asks the provider for an exact zone match on the domain, then on each
    parent in turn, until one matches. Truncation never goes past two
    labels, so a bare TLD is only queried if it was the requested domain.

    Args:
        provider: DNS provider to query.
        domain: The requested domain (wildcards allowed).

    Returns:
        The matched zone with its first two nameservers.

    Raises:
        ZoneNotFoundError: If no candidate matches an active zone.
        InsufficientNameserversError: If the zone lists fewer than two
            nameservers.
        ProviderError: If a provider request fails.
    """
    tried: list[str] = []
    for candidate in parent_domains(domain):
        tried.append(candidate)
        logger.info(
            "Looking up zone",
            extra={"candidate": candidate, **get_domain_extra()},
        )
        zone = provider.find_zone(candidate)
        if zone is None:
            logger.info(
                "Zone not found, trying one subdomain less",
                extra={"candidate": candidate, **get_domain_extra()},
            )
            continue

        if len(zone.name_servers) < 2:
            raise InsufficientNameserversError(zone.name, zone.name_servers)

        match = ZoneMatch(
            zone_id=zone.id,
            name=zone.name,
            nameservers=NameserverPair(
                primary=zone.name_servers[0],
                secondary=zone.name_servers[1],
            ),
        )
        logger.info(
            "Zone found",
            extra={
                "zone": match.name,
                "zone_id": match.zone_id,
                "ns1": match.nameservers.primary,
                "ns2": match.nameservers.secondary,
                **get_domain_extra(),
            },
        )
        return match

    raise ZoneNotFoundError(domain, tried)
