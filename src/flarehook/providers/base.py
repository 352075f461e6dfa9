"""Abstract base class for DNS providers."""

from abc import ABC, abstractmethod

from flarehook.models import DnsRecord, Zone

CHALLENGE_TTL = 120


class DnsProvider(ABC):
    """Abstract interface for DNS providers.

    DNS providers look up the zones of an account and create, list and
    delete the TXT records used for ACME DNS-01 challenge validation.
    """

    def close(self) -> None:
        """Release resources. Override in providers that hold connections."""

    def __enter__(self) -> "DnsProvider":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @abstractmethod
    def find_zone(self, name: str) -> Zone | None:
        """Find the active zone whose name is exactly ``name``.

        Args:
            name: Candidate zone name (e.g. "example.com").

        Returns:
            The zone, or None if the account has no such active zone.

        Raises:
            ProviderError: If the provider request fails.
        """
        ...

    @abstractmethod
    def list_txt_records(self, zone_id: str, name: str) -> list[DnsRecord]:
        """List TXT records with the given fully-qualified name.

        Args:
            zone_id: Provider identifier of the zone.
            name: Record name (e.g. "_acme-challenge.example.com").

        Returns:
            Matching records (up to one page of 100).

        Raises:
            ProviderError: If the provider request fails.
        """
        ...

    @abstractmethod
    def create_txt_record(
        self, zone_id: str, name: str, content: str, ttl: int = CHALLENGE_TTL
    ) -> DnsRecord:
        """Create a TXT record.

        Args:
            zone_id: Provider identifier of the zone.
            name: Record name (e.g. "_acme-challenge.example.com").
            content: TXT value (the ACME validation token).
            ttl: Record TTL in seconds.

        Returns:
            The created record.

        Raises:
            ProviderError: If record creation fails.
        """
        ...

    @abstractmethod
    def delete_record(self, zone_id: str, record_id: str) -> str:
        """Delete a record by identifier.

        Args:
            zone_id: Provider identifier of the zone.
            record_id: Provider identifier of the record.

        Returns:
            The identifier of the deleted record.

        Raises:
            ProviderError: If record deletion fails.
        """
        ...
