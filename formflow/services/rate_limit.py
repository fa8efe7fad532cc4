"""Throttle for anonymous submissions to published forms.

Attempts are counted per (client IP, form slug) inside a fixed window whose
size and ceiling come from ``PUBLIC_SUBMIT_RATE_*``. The counter lives in
Redis; a process-local counter takes over when Redis cannot be reached.
"""
from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

import redis

from formflow.core.config import settings

_LOG = logging.getLogger("formflow.rate_limit")

KEY_PREFIX = "formflow:submit"


@dataclass
class SubmissionQuota:
    allowed: bool
    attempts: int
    retry_after_seconds: int


class SubmissionCounter(Protocol):
    def increment(self, key: str, window_seconds: int) -> tuple[int, int]:
        """Count one attempt; return (attempts in window, seconds until reset)."""
        ...


class LocalSubmissionCounter:
    def __init__(self):
        self._windows: dict[str, tuple[int, float]] = {}
        self._lock = Lock()

    def increment(self, key: str, window_seconds: int) -> tuple[int, int]:
        now = time.monotonic()
        with self._lock:
            attempts, resets_at = self._windows.get(key, (0, now))
            if resets_at <= now:
                attempts, resets_at = 0, now + window_seconds
            attempts += 1
            self._windows[key] = (attempts, resets_at)
        return attempts, max(int(resets_at - now), 0)


class RedisSubmissionCounter:
    def __init__(self, client: redis.Redis):
        self.client = client

    def increment(self, key: str, window_seconds: int) -> tuple[int, int]:
        attempts = int(self.client.incr(key))
        if attempts == 1:
            self.client.expire(key, window_seconds)
        ttl = int(self.client.ttl(key))
        return attempts, ttl if ttl >= 0 else window_seconds


def submission_key(client_ip: str, slug: str) -> str:
    ip_digest = hashlib.sha256(str(client_ip).encode("utf-8")).hexdigest()[:20]
    return f"{KEY_PREFIX}:{slug}:{ip_digest}"


_counter: SubmissionCounter | None = None


def _connect_counter() -> SubmissionCounter:
    try:
        client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=0.4,
            socket_connect_timeout=0.4,
        )
        client.ping()
    except redis.RedisError:
        _LOG.warning("Redis unavailable; counting form submissions in process memory")
        return LocalSubmissionCounter()
    return RedisSubmissionCounter(client)


def get_submission_counter() -> SubmissionCounter:
    global _counter
    if _counter is None:
        _counter = _connect_counter()
    return _counter


def check_submission_quota(client_ip: str, slug: str) -> SubmissionQuota:
    limit = max(int(settings.PUBLIC_SUBMIT_RATE_LIMIT), 1)
    window = max(int(settings.PUBLIC_SUBMIT_RATE_WINDOW_SECONDS), 1)
    attempts, retry_after = get_submission_counter().increment(submission_key(client_ip, slug), window)
    if attempts > limit:
        _LOG.info("submission quota exceeded slug=%s attempts=%s", slug, attempts)
    return SubmissionQuota(allowed=attempts <= limit, attempts=attempts, retry_after_seconds=retry_after)
