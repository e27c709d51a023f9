import redis
import json
from functools import wraps
from typing import Callable, Optional
from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_DB, SESSION_TTL, IDEA_TTL, IDEA_WRITE_RETRIES
from redis_keys import REDIS_IDEA_KEY, REDIS_IDEA_PREFIX, REDIS_TOKEN_KEY, REDIS_SESSION_KEY
from errors import ConcurrentModification, StorageError
from logging_config import get_logger

logger = get_logger(__name__)


def _storage_call(func):
    """Turn redis client failures into StorageError so no driver detail leaks out."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except redis.RedisError as e:
            logger.error(f"Redis operation {func.__name__} failed: {e}", exc_info=True)
            raise StorageError() from e

    return wrapper


class RedisBackend:
    """TTL key-value store for ideas, magic link tokens and sessions.

    Values are JSON blobs stored as plain strings. Expiry is always left to the
    Redis TTL, nothing in the application sweeps stale keys.
    """

    def __init__(self, client: Optional[redis.Redis] = None):
        if client is None:
            logger.info(f"Initializing RedisBackend with connection to {REDIS_HOST}:{REDIS_PORT}")
            client = redis.Redis(
                host=REDIS_HOST,
                port=REDIS_PORT,
                password=REDIS_PASSWORD,
                db=REDIS_DB,
                decode_responses=True,
            )
        self.redis_client = client

    @_storage_call
    def ping(self) -> bool:
        return bool(self.redis_client.ping())

    # Generic JSON blob operations

    @_storage_call
    def put_json(self, key: str, value: dict, ttl: Optional[int] = None):
        self.redis_client.set(key, json.dumps(value), ex=ttl)
        logger.debug(f"Stored {key} with TTL {ttl}")

    @_storage_call
    def get_json(self, key: str) -> Optional[dict]:
        raw = self.redis_client.get(key)
        if raw is None:
            logger.debug(f"{key} not found in Redis")
            return None
        return json.loads(raw)

    @_storage_call
    def pop_json(self, key: str) -> Optional[dict]:
        """Read and delete a key in one round trip (single-use values)."""
        raw = self.redis_client.getdel(key)
        if raw is None:
            return None
        return json.loads(raw)

    @_storage_call
    def delete(self, key: str) -> bool:
        deleted = self.redis_client.delete(key)
        logger.debug(f"Deleted {key}: {deleted}")
        return bool(deleted)

    @_storage_call
    def scan_json(self, prefix: str) -> list[dict]:
        """Every value whose key starts with prefix, in Redis iteration order."""
        keys = list(self.redis_client.scan_iter(match=f"{prefix}*"))
        if not keys:
            return []
        values = self.redis_client.mget(keys)
        # Keys can expire between SCAN and MGET
        return [json.loads(v) for v in values if v is not None]

    @_storage_call
    def delete_prefix(self, prefix: str) -> int:
        keys = list(self.redis_client.scan_iter(match=f"{prefix}*"))
        if not keys:
            return 0
        deleted = self.redis_client.delete(*keys)
        logger.info(f"Deleted {deleted} keys with prefix {prefix}")
        return deleted

    @_storage_call
    def update_many_json(
        self,
        keys: list[str],
        mutate: Callable[[dict[str, Optional[dict]]], dict[str, dict]],
        ttl: Optional[int] = None,
        retries: int = IDEA_WRITE_RETRIES,
    ) -> dict[str, dict]:
        """Optimistic read-modify-write across several keys in one transaction.

        mutate receives {key: current value or None} for every watched key and
        returns {key: new value} for every key to write, watched or not; it may
        raise to abort. All writes land together, and only if none of the watched
        keys was written since it was read. Otherwise the whole cycle is retried.
        """
        for attempt in range(1, retries + 1):
            with self.redis_client.pipeline() as pipe:
                try:
                    pipe.watch(*keys)
                    raws = pipe.mget(keys)
                    current = {key: json.loads(raw) if raw is not None else None for key, raw in zip(keys, raws)}
                    updates = mutate(current)
                    pipe.multi()
                    for key, value in updates.items():
                        pipe.set(key, json.dumps(value), ex=ttl)
                    pipe.execute()
                    logger.debug(f"Updated {sorted(updates)} on attempt {attempt}")
                    return updates
                except redis.WatchError:
                    logger.warning(f"Concurrent write on {keys}, retrying ({attempt}/{retries})")
        logger.error(f"Giving up on {keys} after {retries} conflicting writes")
        raise ConcurrentModification()

    def update_json(
        self,
        key: str,
        mutate: Callable[[Optional[dict]], dict],
        ttl: Optional[int] = None,
        retries: int = IDEA_WRITE_RETRIES,
    ) -> dict:
        """Optimistic read-modify-write of one key.

        mutate receives the current value (None when the key is absent) and returns
        the new value.
        """
        updates = self.update_many_json([key], lambda current: {key: mutate(current[key])}, ttl=ttl, retries=retries)
        return updates[key]

    # Magic link tokens

    def create_token(self, token: str, token_data: dict, ttl: int):
        self.put_json(REDIS_TOKEN_KEY.format(token=token), token_data, ttl=ttl)

    def consume_token(self, token: str) -> Optional[dict]:
        return self.pop_json(REDIS_TOKEN_KEY.format(token=token))

    # Sessions

    def create_session(self, session_id: str, session_data: dict, ttl: int = SESSION_TTL):
        self.put_json(REDIS_SESSION_KEY.format(session_id=session_id), session_data, ttl=ttl)

    def get_session(self, session_id: str) -> Optional[dict]:
        return self.get_json(REDIS_SESSION_KEY.format(session_id=session_id))

    def delete_session(self, session_id: str) -> bool:
        return self.delete(REDIS_SESSION_KEY.format(session_id=session_id))

    # Ideas

    def save_idea(self, idea_id: str, idea_data: dict, ttl: int = IDEA_TTL):
        self.put_json(REDIS_IDEA_KEY.format(idea_id=idea_id), idea_data, ttl=ttl)

    def get_idea(self, idea_id: str) -> Optional[dict]:
        return self.get_json(REDIS_IDEA_KEY.format(idea_id=idea_id))

    def delete_idea(self, idea_id: str) -> bool:
        return self.delete(REDIS_IDEA_KEY.format(idea_id=idea_id))

    def list_ideas(self) -> list[dict]:
        return self.scan_json(REDIS_IDEA_PREFIX)

    def update_idea(self, idea_id: str, mutate: Callable[[Optional[dict]], dict], ttl: int = IDEA_TTL) -> dict:
        return self.update_json(REDIS_IDEA_KEY.format(idea_id=idea_id), mutate, ttl=ttl)

    def update_ideas(
        self,
        idea_ids: list[str],
        mutate: Callable[[dict[str, Optional[dict]]], dict[str, dict]],
        ttl: int = IDEA_TTL,
    ) -> dict[str, dict]:
        """update_many_json keyed by idea id instead of Redis key."""

        def by_key(current: dict[str, Optional[dict]]) -> dict[str, dict]:
            updates = mutate({idea_id: current[REDIS_IDEA_KEY.format(idea_id=idea_id)] for idea_id in idea_ids})
            return {REDIS_IDEA_KEY.format(idea_id=idea_id): value for idea_id, value in updates.items()}

        written = self.update_many_json([REDIS_IDEA_KEY.format(idea_id=i) for i in idea_ids], by_key, ttl=ttl)
        return {key[len(REDIS_IDEA_PREFIX):]: value for key, value in written.items()}

    def delete_all_ideas(self) -> int:
        return self.delete_prefix(REDIS_IDEA_PREFIX)


redis_backend = RedisBackend()


def get_redis_backend() -> RedisBackend:
    """FastAPI dependency, overridden in tests."""
    return redis_backend
