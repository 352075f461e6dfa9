"""ACME challenge helpers."""

from flarehook.challenges.dns01 import CHALLENGE_LABEL, challenge_record_name, contains_value

__all__ = ["CHALLENGE_LABEL", "challenge_record_name", "contains_value"]
