import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, IDEMPOTENCY_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA compare and delete, atomic
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis runs the script as one uninterruptible operation, nobody can get between GET and DEL,
#so a lock that expired and was taken by another request is never deleted by the old owner


class LockService:
    """
    -per-user checkout lock (double click / parallel checkout)
    -idempotency keys: key -> order id of the checkout that used it
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _checkout_key(user_id: int) -> str:
        return f"checkout:{user_id}:lock"

    @staticmethod
    def _idempotency_key(user_id: int, key: str) -> str:
        return f"checkout:{user_id}:idem:{key}"

    @redis_retry()
    def acquire_checkout_lock(self, user_id: int, token: str, ttl: int) -> bool:
        key = self._checkout_key(user_id)
        logger.info(f"Acquire lock {key}")
        #SET checkout:1:lock "<token>" NX EX 30
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_checkout_lock(self, user_id: int, token: str) -> bool:
        key = self._checkout_key(user_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @redis_retry()
    def get_idempotent_order(self, user_id: int, key: str) -> int | None:
        value = self.redis.get(self._idempotency_key(user_id, key))
        return int(value) if value is not None else None

    @redis_retry()
    def remember_idempotent_order(self, user_id: int, key: str, order_id: int,
                                  ttl: int = IDEMPOTENCY_TTL_SECONDS) -> None:
        self.redis.set(name=self._idempotency_key(user_id, key), value=str(order_id), ex=ttl)
