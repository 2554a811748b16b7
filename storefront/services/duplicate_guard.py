# storefront/services/duplicate_guard.py
import hashlib
import json
import threading
import time
import uuid
from collections import OrderedDict
from typing import Callable, Iterable

import redis

from storefront.domain.errors import DuplicateRequest
from storefront.utils import settings
from storefront.utils.logging import get_logger
from storefront.utils.retry import redis_retry

logger = get_logger(__name__)

PENDING = "pending"
ACCEPTED = "accepted"


def fingerprint_purchase(
    user_id: int,
    address_id: int,
    payment_id: int,
    items: Iterable[tuple[int, int, int]],
) -> str:
    """Canonical serialization of a purchase request.

    ``items`` are (product_id, product_weight_id, quantity) triples; their
    order is part of the fingerprint.
    """
    payload = {
        "user_id": user_id,
        "address_id": address_id,
        "payment_id": payment_id,
        "items": [list(i) for i in items],
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class InMemoryDuplicateGuard:
    """
    Per-process map fingerprint -> (state, timestamp).

    acquire() is the atomic check-then-insert: it fails while an identical
    request is in flight or was accepted less than ``window`` seconds ago.
    The map is swept of expired entries once it grows past ``max_entries``.
    """

    def __init__(
        self,
        window: float = settings.DUPLICATE_WINDOW_SECONDS,
        max_entries: int = settings.DUPLICATE_GUARD_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, tuple[str, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def acquire(self, fingerprint: str) -> None:
        with self._lock:
            now = self.clock()
            entry = self._entries.get(fingerprint)
            if entry is not None:
                state, ts = entry
                if state == PENDING or now - ts <= self.window:
                    logger.warning(f"Duplicate purchase request rejected ({state})")
                    raise DuplicateRequest(
                        "An identical purchase request was just submitted",
                        context={"retry_after_seconds": self.window},
                    )
            self._entries[fingerprint] = (PENDING, now)
            self._entries.move_to_end(fingerprint)
            if len(self._entries) > self.max_entries:
                self._sweep(now)

    def commit(self, fingerprint: str) -> None:
        with self._lock:
            self._entries[fingerprint] = (ACCEPTED, self.clock())
            self._entries.move_to_end(fingerprint)

    def release(self, fingerprint: str) -> None:
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is not None and entry[0] == PENDING:
                del self._entries[fingerprint]

    def sweep(self) -> int:
        with self._lock:
            return self._sweep(self.clock())

    def _sweep(self, now: float) -> int:
        expired = [
            fp for fp, (state, ts) in self._entries.items()
            if state == ACCEPTED and now - ts > self.window
        ]
        for fp in expired:
            del self._entries[fp]

        # still too big: drop the oldest accepted entries first
        removed = len(expired)
        if len(self._entries) > self.max_entries:
            for fp in [fp for fp, (state, _) in self._entries.items() if state == ACCEPTED]:
                if len(self._entries) <= self.max_entries:
                    break
                del self._entries[fp]
                removed += 1
        return removed


#LUA compare-and-delete, releases only our own in-flight reservation
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class RedisDuplicateGuard:
    """
    Shared guard for multi-instance deployments.

    -reservation: SET key "pending:<token>" NX PX inflight_ttl
    -success: SET key "accepted" PX window
    -failure: compare-and-delete of our own pending token

    The token is fixed before the retried SET, so a retry after a lost reply
    recognizes its own reservation instead of reporting a duplicate.
    """

    def __init__(
        self,
        url: str | None = None,
        window: float = settings.DUPLICATE_WINDOW_SECONDS,
        inflight_ttl: int = settings.DUPLICATE_INFLIGHT_TTL_SECONDS,
        client: redis.Redis | None = None,
    ):
        self.redis = client or redis.Redis.from_url(
            url or settings.REDIS_URL,
            decode_responses=True,
        )
        self.window = window
        self.inflight_ttl = inflight_ttl
        self._tokens: dict[str, str] = {}

    @staticmethod
    def _key(fingerprint: str) -> str:
        return "purchase:dedup:" + hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()

    def acquire(self, fingerprint: str) -> None:
        token = f"{PENDING}:{uuid.uuid4().hex}"
        if not self._reserve(self._key(fingerprint), token):
            logger.warning("Duplicate purchase request rejected (shared guard)")
            raise DuplicateRequest(
                "An identical purchase request was just submitted",
                context={"retry_after_seconds": self.window},
            )
        self._tokens[fingerprint] = token

    def commit(self, fingerprint: str) -> None:
        self._tokens.pop(fingerprint, None)
        self._mark_accepted(self._key(fingerprint))

    def release(self, fingerprint: str) -> None:
        token = self._tokens.pop(fingerprint, None)
        if token is not None:
            self._delete_if_owned(self._key(fingerprint), token)

    @redis_retry()
    def _reserve(self, key: str, token: str) -> bool:
        if self.redis.set(name=key, value=token, nx=True, px=self.inflight_ttl * 1000):
            return True
        # an earlier attempt may have set it before its reply was lost
        return self.redis.get(key) == token

    @redis_retry()
    def _mark_accepted(self, key: str) -> None:
        self.redis.set(name=key, value=ACCEPTED, px=max(1, int(self.window * 1000)))

    @redis_retry()
    def _delete_if_owned(self, key: str, token: str) -> None:
        self.redis.eval(_RELEASE_LUA, 1, key, token)


def build_duplicate_guard():
    if settings.DUPLICATE_GUARD_BACKEND == "redis":
        logger.info("Using Redis duplicate-submission guard")
        return RedisDuplicateGuard()
    logger.info("Using in-process duplicate-submission guard")
    return InMemoryDuplicateGuard()
