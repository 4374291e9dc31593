"""Per-recipe single-flight lock.

When enabled, load-mutate-save cycles on the same recipe id run one at a
time across all API processes. When disabled (the default) concurrent
mutations on one recipe are last-write-wins.
"""

import logging
from contextlib import contextmanager

from redis.exceptions import LockError, RedisError

from recipebox.errors import InternalError, RecipeBusy
from recipebox.infra.redis_client import get_sync_redis
from recipebox.settings import settings

logger = logging.getLogger("recipebox.lock")


def _lock_key(recipe_id: str) -> str:
    return f"recipebox:lock:recipe:{recipe_id}"


@contextmanager
def recipe_mutation_lock(recipe_id: str):
    if not settings.recipe_lock_enabled:
        yield
        return

    r = get_sync_redis()
    lock = r.lock(
        _lock_key(recipe_id),
        timeout=settings.recipe_lock_timeout_sec,
        blocking_timeout=settings.recipe_lock_wait_sec,
    )
    try:
        acquired = lock.acquire()
    except RedisError as e:
        logger.error(f"Lock backend unavailable for recipe {recipe_id}: {e}")
        raise InternalError() from e
    if not acquired:
        raise RecipeBusy()

    try:
        yield
    finally:
        try:
            lock.release()
        except LockError:
            # Expired before we finished; another writer may already hold it
            logger.warning(f"Lock for recipe {recipe_id} expired before release")
