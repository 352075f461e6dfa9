"""Exceptions raised by zone lookup, DNS verification and the provider API."""

from collections.abc import Sequence
from typing import Any

import dns.exception
import dns.resolver

from flarehook.models import LookupErrorKind


class FlarehookError(Exception):
    """Base exception for all flarehook errors."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


# =============================================================================
# Authoritative lookups
# =============================================================================


class EndpointError(FlarehookError):
    """A TXT query against one authoritative nameserver failed.

    The ``kind`` attribute tells callers whether the failure means the
    record is simply not there yet (``NOT_FOUND``) or something fatal.
    """

    default_kind = LookupErrorKind.TRANSPORT

    def __init__(
        self,
        nameserver: str,
        name: str,
        detail: str,
        kind: LookupErrorKind | None = None,
    ):
        self.nameserver = nameserver
        self.name = name
        self.kind = kind if kind is not None else self.default_kind
        super().__init__(f"TXT {name} @{nameserver}: {detail}")

    @classmethod
    def from_dns_exception(
        cls,
        exc: BaseException,
        nameserver: str,
        name: str,
    ) -> "EndpointError":
        """Create an EndpointError from a dnspython (or socket) exception.

        Routes to the appropriate subclass based on exception type.

        Args:
            exc: The exception raised by the resolving library.
            nameserver: Hostname of the nameserver that was queried.
            name: The queried name.

        Returns:
            EndpointError instance (or appropriate subclass).
        """
        if isinstance(exc, dns.resolver.NXDOMAIN):
            return RecordNotFoundError(nameserver, name, "name does not exist")
        elif isinstance(exc, dns.resolver.NoAnswer):
            return RecordNotFoundError(nameserver, name, "no TXT records")
        elif isinstance(exc, dns.exception.Timeout):
            return EndpointTimeoutError(nameserver, name, "query timed out")

        return cls(nameserver, name, str(exc) or type(exc).__name__)


class RecordNotFoundError(EndpointError):
    """The queried name has no TXT records (NXDOMAIN or empty answer)."""

    default_kind = LookupErrorKind.NOT_FOUND


class EndpointTimeoutError(EndpointError):
    """A nameserver did not answer within the lookup deadline."""

    default_kind = LookupErrorKind.TIMEOUT


class InconsistentRecordsError(FlarehookError):
    """Both nameservers answered, but with different TXT value sets."""

    def __init__(self, name: str, first: Sequence[str], second: Sequence[str]):
        self.name = name
        self.first = list(first)
        self.second = list(second)
        super().__init__(
            f"Inconsistent TXT records for {name} from NS1 ({len(self.first)}) "
            f"and NS2 ({len(self.second)})"
        )


class NameserverResolutionError(FlarehookError):
    """A nameserver hostname could not be resolved to an address."""

    def __init__(self, hostname: str, reason: str):
        self.hostname = hostname
        super().__init__(f"Could not resolve nameserver {hostname}: {reason}")


class PropagationTimeoutError(FlarehookError):
    """The expected TXT value never converged on both nameservers."""

    def __init__(self, name: str, expected: str, attempts: int):
        self.name = name
        self.expected = expected
        self.attempts = attempts
        super().__init__(
            f"Did not find expected challenge record {name} ({expected!r}), "
            f"gave up after {attempts} attempts"
        )


# =============================================================================
# Zone lookup
# =============================================================================


class ZoneNotFoundError(FlarehookError):
    """No active zone in the account matches the domain or its parents."""

    def __init__(self, domain: str, candidates: Sequence[str]):
        self.domain = domain
        self.candidates = list(candidates)
        super().__init__(f"Zone not found in Cloudflare account for {domain}")


class InsufficientNameserversError(FlarehookError):
    """The matched zone lists fewer than two nameservers."""

    def __init__(self, zone: str, nameservers: Sequence[str]):
        self.zone = zone
        self.nameservers = list(nameservers)
        super().__init__(
            f"Could not find two or more nameservers in zone {zone} "
            f"(found {len(self.nameservers)})"
        )


# =============================================================================
# Provider API and configuration
# =============================================================================


class ProviderError(FlarehookError):
    """The Cloudflare API rejected a request or could not be reached."""

    def __init__(
        self,
        detail: str,
        status_code: int | None = None,
        errors: list[dict[str, Any]] | None = None,
    ):
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(detail)

    @classmethod
    def from_response(
        cls,
        action: str,
        data: dict[str, Any],
        status_code: int,
    ) -> "ProviderError":
        """Create a ProviderError from a Cloudflare JSON envelope.

        Args:
            action: What was being attempted (for the message).
            data: Parsed JSON response.
            status_code: HTTP status code.

        Returns:
            ProviderError instance.
        """
        errors = data.get("errors") or []
        messages = "; ".join(
            f"{err.get('code', '?')}: {err.get('message', 'unknown error')}" for err in errors
        )
        detail = f"Failed to {action} (HTTP {status_code})"
        if messages:
            detail = f"{detail}: {messages}"
        return cls(detail, status_code=status_code, errors=errors)


class ConfigError(FlarehookError):
    """Credentials or the certbot renewal configuration are missing or invalid."""

    pass
