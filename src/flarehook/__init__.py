"""Flarehook - certbot DNS-01 hook for Cloudflare with authoritative verification."""

from flarehook.hook import ChallengeHook
from flarehook.poller import poll_until_converged
from flarehook.resolver import lookup_compare_txt
from flarehook.zones import locate_zone

__all__ = ["ChallengeHook", "locate_zone", "lookup_compare_txt", "poll_until_converged"]
__version__ = "0.1.0"
