"""
Storage for in-flight AI response streams.

A client that loses its connection mid-stream can pick up the partial
response from here. Entries live in Redis under `stream:{id}` with a TTL when
REDIS_URL is configured and reachable; otherwise they are kept in process
memory with the same expiry.
"""

from typing import Dict, Optional, Tuple
import logging
import threading
import time
from app.core.config import settings
from app.schemas.stream import StreamData

logger = logging.getLogger(__name__)

KEY_PREFIX = "stream:"


class StreamStorage:
    def __init__(self, redis_url: Optional[str] = None, ttl: Optional[int] = None):
        self.ttl = ttl or settings.STREAM_TTL_SECONDS
        self.redis = None
        self._memory: Dict[str, Tuple[float, StreamData]] = {}
        self._lock = threading.Lock()

        redis_url = redis_url if redis_url is not None else settings.REDIS_URL
        if redis_url:
            try:
                import redis
                self.redis = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5
                )
                self.redis.ping()
                logger.info(f"Stream storage connected to Redis: {redis_url}")
            except Exception as e:
                logger.warning(f"Failed to connect to Redis: {e}. Using in-memory stream storage.")
                self.redis = None

    @property
    def backend(self) -> str:
        return "redis" if self.redis else "memory"

    @staticmethod
    def _key(stream_id: str) -> str:
        return f"{KEY_PREFIX}{stream_id}"

    def _store_memory(self, stream_id: str, data: StreamData) -> None:
        with self._lock:
            self._purge_expired()
            self._memory[stream_id] = (time.monotonic() + self.ttl, data)

    def _get_memory(self, stream_id: str) -> Optional[StreamData]:
        with self._lock:
            entry = self._memory.get(stream_id)
            if entry is None:
                return None
            expires_at, data = entry
            if expires_at <= time.monotonic():
                del self._memory[stream_id]
                return None
            return data

    def store(self, stream_id: str, data: StreamData) -> None:
        if self.redis:
            try:
                self.redis.setex(self._key(stream_id), self.ttl, data.model_dump_json())
                return
            except Exception as e:
                logger.warning(f"Failed to store stream data in Redis, falling back to memory: {e}")
        self._store_memory(stream_id, data)

    def get(self, stream_id: str) -> Optional[StreamData]:
        if self.redis:
            try:
                raw = self.redis.get(self._key(stream_id))
                if raw:
                    return StreamData.model_validate_json(raw)
            except Exception as e:
                logger.warning(f"Failed to retrieve stream data from Redis, checking memory: {e}")
        return self._get_memory(stream_id)

    def delete(self, stream_id: str) -> None:
        if self.redis:
            try:
                self.redis.delete(self._key(stream_id))
            except Exception as e:
                logger.warning(f"Failed to delete stream data from Redis: {e}")
        with self._lock:
            self._memory.pop(stream_id, None)

    def _purge_expired(self) -> int:
        now = time.monotonic()
        expired = [stream_id for stream_id, (expires_at, _) in self._memory.items() if expires_at <= now]
        for stream_id in expired:
            del self._memory[stream_id]
        if expired:
            logger.debug(f"Removed {len(expired)} expired streams")
        return len(expired)

    def cleanup(self) -> int:
        """Drop expired in-memory entries. Redis expires its own keys."""
        with self._lock:
            return self._purge_expired()
