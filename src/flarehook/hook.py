"""Certbot manual-hook orchestration for DNS-01 challenges on Cloudflare."""

import re

from flarehook._logging import get_logger, reset_domain, set_domain
from flarehook.challenges.dns01 import challenge_record_name, contains_value
from flarehook.exceptions import EndpointError, FlarehookError
from flarehook.models import LookupErrorKind, PollResult, ZoneMatch, ZoneRef
from flarehook.poller import MAX_ATTEMPTS, RETRY_DELAY, poll_until_converged
from flarehook.providers.base import DnsProvider
from flarehook.resolver import LOOKUP_TIMEOUT, Endpoint, endpoints_for, lookup_compare_txt
from flarehook.zones import locate_zone

logger = get_logger(__name__)

_AUTH_OUTPUT_RE = re.compile(r"^zone_id=(?P<zone_id>\S+)\s+zone=(?P<name>\S+)\s*$", re.MULTILINE)


def format_auth_output(zone: ZoneRef) -> str:
    """Format the zone line the auth hook prints for the cleanup hook.

    Certbot hands whatever the auth hook writes to stdout to the cleanup
    hook as ``CERTBOT_AUTH_OUTPUT``.
    """
    return f"zone_id={zone.zone_id} zone={zone.name}"


def parse_auth_output(text: str | None) -> ZoneRef | None:
    """Recover the zone captured by the auth hook, if it printed one."""
    if not text:
        return None
    match = _AUTH_OUTPUT_RE.search(text)
    if match is None:
        return None
    return ZoneRef(zone_id=match["zone_id"], name=match["name"])


class ChallengeHook:
    """Publish, verify and remove the DNS-01 challenge record for one domain.

    Args:
        provider: DNS provider managing the domain's zone.
        domain: The domain being validated (``CERTBOT_DOMAIN``).
        validation: The validation token (``CERTBOT_VALIDATION``).
        max_attempts: Convergence poll bound.
        delay: Seconds between poll attempts.
        lookup_timeout: Shared deadline of each dual nameserver lookup.
    """

    def __init__(
        self,
        provider: DnsProvider,
        domain: str,
        validation: str,
        max_attempts: int = MAX_ATTEMPTS,
        delay: float = RETRY_DELAY,
        lookup_timeout: float = LOOKUP_TIMEOUT,
    ):
        self.provider = provider
        self.domain = domain
        self.validation = validation
        self.max_attempts = max_attempts
        self.delay = delay
        self.lookup_timeout = lookup_timeout
        self.record_name = challenge_record_name(domain)

    def locate(self) -> ZoneMatch:
        """Find the zone managing the domain."""
        return locate_zone(self.provider, self.domain)

    def _endpoints(self, zone: ZoneMatch) -> tuple[Endpoint, Endpoint]:
        return endpoints_for(zone.nameservers, timeout=self.lookup_timeout)

    def _already_published(self, ns1: Endpoint, ns2: Endpoint) -> bool:
        """Check whether both nameservers already serve the token.

        Any lookup failure here only means the record must be created.
        """
        try:
            values = lookup_compare_txt(ns1, ns2, self.record_name, timeout=self.lookup_timeout)
        except EndpointError as e:
            if e.kind is LookupErrorKind.NOT_FOUND:
                logger.info(
                    "Initial lookup did not find the record",
                    extra={"record_name": self.record_name, "reason": e.detail},
                )
            else:
                logger.warning(
                    "Initial lookup failed",
                    extra={
                        "record_name": self.record_name,
                        "kind": e.kind.value,
                        "reason": e.detail,
                    },
                )
            return False
        except FlarehookError as e:
            logger.info(
                "Initial lookup did not find the record",
                extra={"record_name": self.record_name, "reason": e.detail},
            )
            return False
        return contains_value(values, self.validation)

    def authenticate(self) -> ZoneMatch:
        """Publish the challenge record and wait until it is served.

        Returns:
            The zone the record was published in.

        Raises:
            ZoneNotFoundError: If no zone manages the domain.
            InsufficientNameserversError: If the zone has fewer than two
                nameservers.
            ProviderError: If the record cannot be created.
            PropagationTimeoutError: If the record never converged.
            EndpointError: On fatal lookup failures.
        """
        token = set_domain(self.domain)
        try:
            zone = self.locate()
            ns1, ns2 = self._endpoints(zone)

            logger.info("Attempting initial lookup", extra={"record_name": self.record_name})
            if self._already_published(ns1, ns2):
                logger.info(
                    "Expected challenge record already exists on domain",
                    extra={"record_name": self.record_name},
                )
                return zone

            logger.info(
                "Creating challenge record",
                extra={"record_name": self.record_name, "zone": zone.name},
            )
            self.provider.create_txt_record(zone.zone_id, self.record_name, self.validation)

            result: PollResult = poll_until_converged(
                ns1,
                ns2,
                self.record_name,
                self.validation,
                max_attempts=self.max_attempts,
                delay=self.delay,
                timeout=self.lookup_timeout,
            )
            logger.info(
                "Challenge record verified",
                extra={"record_name": self.record_name, "attempts": result.attempts},
            )
            return zone
        finally:
            reset_domain(token)

    def cleanup(self, zone: ZoneRef | None = None) -> int:
        """Delete the challenge records carrying this run's token.

        Args:
            zone: Zone captured by the auth hook. When omitted the zone is
                located again.

        Returns:
            Number of records deleted.

        Raises:
            ZoneNotFoundError: If the zone has to be located and is not found.
            ProviderError: If listing or deleting records fails.
        """
        token = set_domain(self.domain)
        try:
            if zone is None:
                logger.warning(
                    "No zone captured by the auth hook, locating it again",
                    extra={"record_name": self.record_name},
                )
                zone = self.locate()

            records = self.provider.list_txt_records(zone.zone_id, self.record_name)
            matching = [r for r in records if r.content == self.validation]
            if not matching:
                logger.info(
                    "No challenge records to clean up",
                    extra={"record_name": self.record_name, "zone": zone.name},
                )
                return 0

            logger.info(
                "Found challenge records to clean up",
                extra={"count": len(matching), "zone": zone.name},
            )
            for record in matching:
                self.provider.delete_record(zone.zone_id, record.id)
            return len(matching)
        finally:
            reset_domain(token)
