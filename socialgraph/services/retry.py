"""Bounded retry of store transactions that lost a race or timed out."""

import logging
import time

from socialgraph.exceptions import TransientStoreError
from socialgraph.stores import RetryableStoreError

logger = logging.getLogger(__name__)


def run_with_retry(store, fn, *, max_attempts, backoff, description):
    """Run fn in a store transaction, re-running it on retryable aborts.

    Sleeps ``backoff``, ``2 * backoff``, ``4 * backoff``... between
    attempts and raises TransientStoreError once ``max_attempts`` are used.
    """
    last_error = None
    for attempt in range(1, max_attempts + 1):
        try:
            return store.run_transaction(fn)
        except RetryableStoreError as error:
            last_error = error
            logger.debug("%s: attempt %d/%d aborted: %s", description, attempt, max_attempts, error)
            if attempt < max_attempts and backoff:
                time.sleep(backoff * (2 ** (attempt - 1)))
    logger.warning("%s: gave up after %d attempts", description, max_attempts)
    raise TransientStoreError(f"Could not {description} after {max_attempts} attempts") from last_error
