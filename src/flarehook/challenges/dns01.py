"""DNS-01 challenge record naming."""

from collections.abc import Iterable

CHALLENGE_LABEL = "_acme-challenge"


def challenge_record_name(domain: str) -> str:
    """Compute the TXT record name for a DNS-01 challenge.

    Wildcard identifiers are validated at the base domain, so the
    leading ``*.`` is stripped before the label is prepended.

    Args:
        domain: The requested domain (e.g. "*.example.com").

    Returns:
        The challenge record name (e.g. "_acme-challenge.example.com").
    """
    domain = domain.rstrip(".")
    if len(domain) > 2 and domain.startswith("*."):
        domain = domain[2:]
    return f"{CHALLENGE_LABEL}.{domain}"


def contains_value(values: Iterable[str], expected: str) -> bool:
    """Check whether the expected token is among the TXT values (exact match)."""
    return any(value == expected for value in values)
