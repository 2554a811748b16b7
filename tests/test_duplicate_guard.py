import threading

import pytest
import redis

from storefront.domain.errors import DuplicateRequest
from storefront.services.duplicate_guard import (
    InMemoryDuplicateGuard,
    RedisDuplicateGuard,
    fingerprint_purchase,
)
from tests.fakes import FakeClock, FakeRedis


FP = fingerprint_purchase(7, 3, 1, [(1, 12, 2), (1, 9, 1)])


class TestFingerprint:

    def test_same_request_same_fingerprint(self):
        assert fingerprint_purchase(7, 3, 1, [(1, 12, 2), (1, 9, 1)]) == FP

    def test_every_field_counts(self):
        assert fingerprint_purchase(8, 3, 1, [(1, 12, 2), (1, 9, 1)]) != FP
        assert fingerprint_purchase(7, 4, 1, [(1, 12, 2), (1, 9, 1)]) != FP
        assert fingerprint_purchase(7, 3, 2, [(1, 12, 2), (1, 9, 1)]) != FP
        assert fingerprint_purchase(7, 3, 1, [(1, 12, 3), (1, 9, 1)]) != FP

    def test_item_order_is_significant(self):
        assert fingerprint_purchase(7, 3, 1, [(1, 9, 1), (1, 12, 2)]) != FP


class TestInMemoryGuard:

    def test_in_flight_request_blocks_identical_one(self, guard):
        guard.acquire(FP)
        with pytest.raises(DuplicateRequest):
            guard.acquire(FP)

    def test_accepted_request_blocks_inside_window(self, guard, clock):
        guard.acquire(FP)
        guard.commit(FP)
        clock.advance(1.5)
        with pytest.raises(DuplicateRequest) as exc:
            guard.acquire(FP)
        assert exc.value.context["retry_after_seconds"] == 1.5

    def test_accepted_request_expires_after_window(self, guard, clock):
        guard.acquire(FP)
        guard.commit(FP)
        clock.advance(1.51)
        guard.acquire(FP)

    def test_release_frees_the_slot(self, guard):
        guard.acquire(FP)
        guard.release(FP)
        guard.acquire(FP)

    def test_release_never_drops_an_accepted_entry(self, guard):
        guard.acquire(FP)
        guard.commit(FP)
        guard.release(FP)
        with pytest.raises(DuplicateRequest):
            guard.acquire(FP)

    def test_pending_entry_does_not_expire_with_the_window(self, guard, clock):
        guard.acquire(FP)
        clock.advance(60)
        with pytest.raises(DuplicateRequest):
            guard.acquire(FP)

    def test_sweep_drops_only_expired_accepted_entries(self, guard, clock):
        guard.acquire("old")
        guard.commit("old")
        guard.acquire("inflight")
        clock.advance(2)
        guard.acquire("fresh")
        guard.commit("fresh")

        assert guard.sweep() == 1
        assert len(guard) == 2

    def test_map_stays_bounded(self):
        clock = FakeClock()
        guard = InMemoryDuplicateGuard(window=1.5, max_entries=5, clock=clock)
        for n in range(50):
            guard.acquire(f"fp-{n}")
            guard.commit(f"fp-{n}")
            clock.advance(0.1)
        assert len(guard) <= 5
        # the newest entry survives eviction
        with pytest.raises(DuplicateRequest):
            guard.acquire("fp-49")

    def test_only_one_concurrent_acquire_wins(self):
        guard = InMemoryDuplicateGuard(window=1.5)
        barrier = threading.Barrier(8)
        outcomes = []

        def attempt():
            barrier.wait()
            try:
                guard.acquire(FP)
                outcomes.append("ok")
            except DuplicateRequest:
                outcomes.append("duplicate")

        threads = [threading.Thread(target=attempt) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("duplicate") == 7


class TestRedisGuard:

    @pytest.fixture
    def redis_guard(self, clock):
        return RedisDuplicateGuard(window=1.5, inflight_ttl=30, client=FakeRedis(clock))

    def test_reservation_then_commit_then_expiry(self, redis_guard, clock):
        redis_guard.acquire(FP)
        with pytest.raises(DuplicateRequest):
            redis_guard.acquire(FP)

        redis_guard.commit(FP)
        clock.advance(1.0)
        with pytest.raises(DuplicateRequest):
            redis_guard.acquire(FP)

        clock.advance(0.6)
        redis_guard.acquire(FP)

    def test_release_removes_pending_marker_only(self, redis_guard):
        redis_guard.acquire(FP)
        redis_guard.release(FP)
        redis_guard.acquire(FP)

        redis_guard.commit(FP)
        redis_guard.release(FP)
        with pytest.raises(DuplicateRequest):
            redis_guard.acquire(FP)

    def test_abandoned_reservation_expires(self, redis_guard, clock):
        redis_guard.acquire(FP)
        clock.advance(31)
        redis_guard.acquire(FP)

    def test_keys_are_hashed(self, redis_guard):
        key = redis_guard._key(FP)
        assert key.startswith("purchase:dedup:")
        assert len(key) == len("purchase:dedup:") + 64

    def test_lost_reply_to_reservation_is_not_a_duplicate(self, clock):
        class DroppedReplyRedis(FakeRedis):
            dropped = False

            def set(self, name, value, nx=False, px=None):
                result = super().set(name, value, nx=nx, px=px)
                if nx and not self.dropped:
                    # written on the server, reply lost on the way back
                    self.dropped = True
                    raise redis.ConnectionError("connection reset by peer")
                return result

        client = DroppedReplyRedis(clock)
        redis_guard = RedisDuplicateGuard(window=1.5, inflight_ttl=30, client=client)

        redis_guard.acquire(FP)

        assert client.dropped
        with pytest.raises(DuplicateRequest):
            redis_guard.acquire(FP)

    def test_release_does_not_delete_another_requests_reservation(self, redis_guard, clock):
        redis_guard.acquire(FP)
        clock.advance(31)
        # our reservation expired, an identical request on another instance took the slot
        other = RedisDuplicateGuard(window=1.5, inflight_ttl=30, client=redis_guard.redis)
        other.acquire(FP)

        redis_guard.release(FP)

        with pytest.raises(DuplicateRequest):
            redis_guard.acquire(FP)
