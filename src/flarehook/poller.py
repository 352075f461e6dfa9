"""Poll authoritative nameservers until a challenge record converges."""

import time

from flarehook._logging import get_domain_extra, get_logger
from flarehook.challenges.dns01 import contains_value
from flarehook.exceptions import (
    EndpointError,
    InconsistentRecordsError,
    PropagationTimeoutError,
)
from flarehook.models import LookupErrorKind, PollResult, PollState
from flarehook.resolver import LOOKUP_TIMEOUT, Endpoint, lookup_compare_txt

logger = get_logger(__name__)

MAX_ATTEMPTS = 30
RETRY_DELAY = 1.0  # seconds, fixed between attempts


def poll_until_converged(
    endpoint1: Endpoint,
    endpoint2: Endpoint,
    name: str,
    expected: str,
    max_attempts: int = MAX_ATTEMPTS,
    delay: float = RETRY_DELAY,
    timeout: float = LOOKUP_TIMEOUT,
) -> PollResult:
    """Wait until both nameservers serve the expected TXT value.

    Each attempt is one dual lookup. Disagreement between the servers, a
    missing record, or an answer without the expected value are normal
    while the record propagates, and lead to another attempt after a fixed
    delay. Any other lookup failure ends polling immediately.

    Args:
        endpoint1: NS1.
        endpoint2: NS2.
        name: Challenge record name.
        expected: The validation token that must be present.
        max_attempts: Upper bound on lookups.
        delay: Seconds to sleep between attempts.
        timeout: Shared deadline of each lookup.

    Returns:
        PollResult in the CONVERGED state with the attempt count.

    Raises:
        PropagationTimeoutError: If the value did not converge within
            ``max_attempts`` lookups.
        EndpointError: For lookup failures other than a missing record
            (including EndpointTimeoutError).
    """
    state = PollState.CHECKING
    for attempt in range(1, max_attempts + 1):
        if state is PollState.WAITING_RETRY:
            time.sleep(delay)
            state = PollState.CHECKING

        try:
            values = lookup_compare_txt(endpoint1, endpoint2, name, timeout=timeout)
        except InconsistentRecordsError as e:
            logger.info(
                "Nameservers disagree, retrying",
                extra={
                    "attempt": attempt,
                    "ns1_count": len(e.first),
                    "ns2_count": len(e.second),
                    **get_domain_extra(),
                },
            )
            state = PollState.WAITING_RETRY
            continue
        except EndpointError as e:
            if e.kind is not LookupErrorKind.NOT_FOUND:
                raise
            logger.info(
                "Challenge record not found yet, retrying",
                extra={"attempt": attempt, "nameserver": e.nameserver, **get_domain_extra()},
            )
            state = PollState.WAITING_RETRY
            continue

        if contains_value(values, expected):
            logger.info(
                "Found expected challenge record",
                extra={"attempts": attempt, "record_name": name, **get_domain_extra()},
            )
            return PollResult(
                found=True,
                attempts=attempt,
                state=PollState.CONVERGED,
                values=values,
            )

        logger.info(
            "Challenge record missing from answer, retrying",
            extra={"attempt": attempt, "values": len(values), **get_domain_extra()},
        )
        state = PollState.WAITING_RETRY

    logger.error(
        "Gave up waiting for challenge record",
        extra={
            "attempts": max_attempts,
            "record_name": name,
            "state": PollState.GIVEN_UP.value,
            **get_domain_extra(),
        },
    )
    raise PropagationTimeoutError(name, expected, max_attempts)
