"""Command line entry point, for use as certbot's manual auth/cleanup hook.

    certbot certonly --manual --preferred-challenges dns \\
        --manual-auth-hook flarehook \\
        --manual-cleanup-hook "flarehook --cleanup" -d example.com
"""

from pathlib import Path

import click

from flarehook._logging import configure_cli_logging, get_logger
from flarehook.config import (
    DEFAULT_RENEW_PATH,
    Credentials,
    resolve_credentials,
    save_renewal_credentials,
)
from flarehook.exceptions import ConfigError, FlarehookError
from flarehook.hook import ChallengeHook, format_auth_output, parse_auth_output
from flarehook.poller import MAX_ATTEMPTS, RETRY_DELAY
from flarehook.providers.cloudflare import CloudflareProvider

logger = get_logger(__name__)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--cleanup",
    is_flag=True,
    help="Cleanup mode (to be used in --manual-cleanup-hook).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option(
    "--renew-path",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_RENEW_PATH,
    show_default=True,
    help="Certbot renewal config directory.",
)
@click.option(
    "--save-renew-creds",
    is_flag=True,
    help="Save Cloudflare credentials to the certbot renewal config.",
)
@click.option(
    "--only-save-renew-creds",
    is_flag=True,
    help="Do nothing other than save Cloudflare credentials to the renewal config.",
)
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    default=MAX_ATTEMPTS,
    show_default=True,
    help="Lookups before giving up on propagation.",
)
@click.option(
    "--delay",
    type=click.FloatRange(min=0),
    default=RETRY_DELAY,
    show_default=True,
    help="Seconds between propagation lookups.",
)
@click.option("--domain", envvar="CERTBOT_DOMAIN", required=True, help="Domain being validated.")
@click.option("--validation", envvar="CERTBOT_VALIDATION", help="Validation token.")
@click.option(
    "--auth-output",
    envvar="CERTBOT_AUTH_OUTPUT",
    help="Output of the auth hook (cleanup mode).",
)
@click.option("--api-token", envvar="CF_API_TOKEN", help="Cloudflare API token.")
@click.option("--api-email", envvar="CF_API_EMAIL", help="Cloudflare account email.")
@click.option("--api-key", envvar="CF_API_KEY", help="Cloudflare global API key.")
def main(
    cleanup: bool,
    verbose: bool,
    renew_path: Path,
    save_renew_creds: bool,
    only_save_renew_creds: bool,
    max_attempts: int,
    delay: float,
    domain: str,
    validation: str | None,
    auth_output: str | None,
    api_token: str | None,
    api_email: str | None,
    api_key: str | None,
) -> None:
    """Publish and verify (or clean up) a DNS-01 challenge record on Cloudflare."""
    configure_cli_logging(verbose)
    if only_save_renew_creds:
        save_renew_creds = True

    try:
        credentials, renewal_file = resolve_credentials(
            Credentials(api_token=api_token, api_email=api_email, api_key=api_key),
            renew_path,
            domain,
        )

        if not only_save_renew_creds:
            if not validation:
                raise ConfigError("CERTBOT_VALIDATION is not set")
            with CloudflareProvider(credentials) as provider:
                hook = ChallengeHook(
                    provider,
                    domain,
                    validation,
                    max_attempts=max_attempts,
                    delay=delay,
                )
                if cleanup:
                    hook.cleanup(parse_auth_output(auth_output))
                else:
                    zone = hook.authenticate()
                    click.echo(format_auth_output(zone))

        if save_renew_creds:
            if renewal_file is None:
                raise ConfigError(f"Certbot renewal file not found for {domain} in {renew_path}")
            save_renewal_credentials(renewal_file, credentials)
    except FlarehookError as e:
        logger.debug("Hook failed", exc_info=True)
        raise click.ClickException(e.detail) from e


if __name__ == "__main__":
    main()
