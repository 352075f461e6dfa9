"""Cloudflare credentials and the certbot renewal configuration."""

from pathlib import Path

import configobj
from pydantic import BaseModel

from flarehook._logging import get_logger
from flarehook.exceptions import ConfigError
from flarehook.zones import parent_domains

logger = get_logger(__name__)

DEFAULT_RENEW_PATH = Path("/etc/letsencrypt/renewal")
RENEWAL_SECTION = "flarehook"

_TOKEN_KEY = "cf_api_token"
_EMAIL_KEY = "cf_api_email"
_KEY_KEY = "cf_api_key"


class Credentials(BaseModel):
    """Cloudflare API credentials.

    Either a scoped API token, or the account email together with the
    global API key. A token wins when both are present.
    """

    api_token: str | None = None
    api_email: str | None = None
    api_key: str | None = None

    model_config = {"frozen": True}

    @property
    def is_complete(self) -> bool:
        """True when the credentials can authenticate a request."""
        return bool(self.api_token) or bool(self.api_email and self.api_key)

    def merged_with(self, fallback: "Credentials") -> "Credentials":
        """Fill unset fields from ``fallback``."""
        return Credentials(
            api_token=self.api_token or fallback.api_token,
            api_email=self.api_email or fallback.api_email,
            api_key=self.api_key or fallback.api_key,
        )

    def auth_headers(self) -> dict[str, str]:
        """Build the Cloudflare authentication headers.

        Raises:
            ConfigError: If the credentials are incomplete.
        """
        if self.api_token:
            return {"Authorization": f"Bearer {self.api_token}"}
        if self.api_email and self.api_key:
            return {"X-Auth-Email": self.api_email, "X-Auth-Key": self.api_key}
        raise ConfigError("Cloudflare API token, or email and API key, are required")


def find_renewal_file(renew_path: Path, domain: str) -> Path:
    """Find the certbot renewal config for a domain.

    Certbot names the file after the certificate's lineage, which is
    usually the first domain on the certificate, so parent domains are
    tried as well.

    Args:
        renew_path: Directory holding certbot's ``*.conf`` renewal files.
        domain: The requested domain.

    Returns:
        Path of the first existing renewal file.

    Raises:
        ConfigError: If no renewal file exists for the domain or its parents.
    """
    for candidate in parent_domains(domain):
        path = renew_path / f"{candidate}.conf"
        if path.is_file():
            logger.debug("Renewal file found", extra={"path": str(path)})
            return path
    raise ConfigError(f"Certbot renewal file not found for {domain} in {renew_path}")


def _load(path: Path) -> configobj.ConfigObj:
    try:
        return configobj.ConfigObj(str(path), file_error=True, encoding="utf-8")
    except (OSError, configobj.ConfigObjError) as e:
        raise ConfigError(f'Failed to load file "{path}": {e}') from e


def load_renewal_credentials(path: Path) -> Credentials:
    """Read Cloudflare credentials from a renewal file's flarehook section.

    Args:
        path: Certbot renewal config file.

    Returns:
        The stored credentials (fields may be unset).

    Raises:
        ConfigError: If the file cannot be parsed or has no flarehook section.
    """
    config = _load(path)
    if RENEWAL_SECTION not in config:
        raise ConfigError(f'Could not find section "{RENEWAL_SECTION}" in file "{path}"')
    section = config[RENEWAL_SECTION]
    return Credentials(
        api_token=section.get(_TOKEN_KEY) or None,
        api_email=section.get(_EMAIL_KEY) or None,
        api_key=section.get(_KEY_KEY) or None,
    )


def save_renewal_credentials(path: Path, credentials: Credentials) -> None:
    """Store Cloudflare credentials in a renewal file, replacing earlier ones.

    Args:
        path: Certbot renewal config file.
        credentials: Credentials to store.

    Raises:
        ConfigError: If the file cannot be read or written.
    """
    config = _load(path)
    if RENEWAL_SECTION in config:
        del config[RENEWAL_SECTION]
    section: dict[str, str] = {}
    if credentials.api_token:
        section[_TOKEN_KEY] = credentials.api_token
    if credentials.api_email:
        section[_EMAIL_KEY] = credentials.api_email
    if credentials.api_key:
        section[_KEY_KEY] = credentials.api_key
    config[RENEWAL_SECTION] = section
    try:
        config.write()
    except OSError as e:
        raise ConfigError(f'Failed to save file "{path}": {e}') from e
    logger.info("Credentials saved to renewal file", extra={"path": str(path)})


def resolve_credentials(
    given: Credentials,
    renew_path: Path,
    domain: str,
) -> tuple[Credentials, Path | None]:
    """Complete credentials from the renewal file when needed.

    Credentials passed on the command line or environment are used as-is
    when complete; otherwise the missing fields come from the domain's
    renewal file.

    Args:
        given: Credentials from options/environment.
        renew_path: Directory holding certbot renewal files.
        domain: The requested domain.

    Returns:
        The complete credentials, and the renewal file if one was found.

    Raises:
        ConfigError: If no complete set of credentials can be assembled.
    """
    if given.is_complete:
        try:
            return given, find_renewal_file(renew_path, domain)
        except ConfigError:
            return given, None

    renewal_file = find_renewal_file(renew_path, domain)
    logger.info(
        "Credentials incomplete, reading renewal file",
        extra={"path": str(renewal_file)},
    )
    credentials = given.merged_with(load_renewal_credentials(renewal_file))
    if not credentials.is_complete:
        raise ConfigError("Cloudflare API token, or email and API key, are empty")
    return credentials, renewal_file
