# spincart/services/lock_service.py
import uuid
from contextlib import contextmanager

import redis
from redis.exceptions import RedisError
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_result

from spincart.domain.errors import ConflictError
from spincart.utils.retry import redis_retry
from spincart.utils.settings import REDIS_URL, SPIN_LOCK_TTL_SECONDS, SPIN_LOCK_ATTEMPTS
from spincart.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

SPIN_DEFINITIONS_LOCK = "spin-definitions:lock"


class LockService:
    """
    -lock na klucz (SET NX EX) z tokenem wlasciciela
    -zwalnianie przez lua (GET + porownanie + DEL naraz)
    -hold(): czekanie na lock z tenacity, ConflictError gdy sie nie uda
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        logger.info(f"Acquire lock {key}")
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        logger.info(f"Release lock {key}")
        return bool(self.redis.eval(_RELEASE_LUA, 1, key, token))

    @contextmanager
    def hold(self, key: str, ttl: int = SPIN_LOCK_TTL_SECONDS, attempts: int = SPIN_LOCK_ATTEMPTS):
        token = uuid.uuid4().hex
        waiter = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
            retry=retry_if_result(lambda acquired: not acquired),
            retry_error_callback=lambda state: False,
        )

        if not waiter(self.acquire, key, token, ttl):
            raise ConflictError(f"Resource {key} is busy, try again")

        try:
            yield token
        finally:
            try:
                self.release(key, token)
            except RedisError as e:
                # lock i tak wygasnie po ttl
                logger.warning(f"Failed to release lock {key}: {e}")
