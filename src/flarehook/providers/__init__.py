"""DNS providers for ACME challenge validation."""

from flarehook.providers.base import DnsProvider
from flarehook.providers.cloudflare import CloudflareProvider

__all__ = ["CloudflareProvider", "DnsProvider"]
