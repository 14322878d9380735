"""
Tests for distributed locking utilities.

Tests the DistributedLock class which keeps background passes from
overlapping across workers.
"""

import pytest

from payments.exceptions import LockAcquisitionError
from payments.locks import DistributedLock


class TestDistributedLock:
    """Tests for DistributedLock class."""

    def test_acquire_success(self, mock_redis):
        """Should acquire lock when available."""
        lock = DistributedLock("test:key", ttl=30, blocking=False)
        result = lock.acquire()

        assert result is True
        assert lock.is_held is True
        call_args = mock_redis.set.call_args
        assert call_args[0][0] == "lock:test:key"
        assert call_args[1]["nx"] is True
        assert call_args[1]["ex"] == 30

    def test_acquire_generates_unique_token(self, mock_redis):
        lock1 = DistributedLock("test:key1", ttl=30, blocking=False)
        lock2 = DistributedLock("test:key2", ttl=30, blocking=False)

        lock1.acquire()
        lock2.acquire()

        assert lock1._token != lock2._token

    def test_non_blocking_raises_when_held(self, mock_redis):
        """Non-blocking mode should raise immediately if lock unavailable."""
        mock_redis.set.return_value = False

        lock = DistributedLock("test:key", ttl=30, blocking=False)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert "already held" in str(exc_info.value)
        assert exc_info.value.details["key"] == "lock:test:key"
        assert lock.is_held is False
        assert mock_redis.set.call_count == 1

    def test_blocking_waits_and_acquires(self, mock_redis):
        mock_redis.set.side_effect = [False, False, True]

        lock = DistributedLock("test:key", ttl=30, blocking=True, timeout=1.0)

        assert lock.acquire() is True
        assert mock_redis.set.call_count == 3

    def test_blocking_timeout_raises(self, mock_redis):
        mock_redis.set.return_value = False

        lock = DistributedLock("test:key", ttl=30, blocking=True, timeout=0.1)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert exc_info.value.details["timeout"] == 0.1
        assert lock.is_held is False

    def test_release_success(self, mock_redis):
        lock = DistributedLock("test:key", ttl=30, blocking=False)
        lock.acquire()

        assert lock.release() is True
        assert lock.is_held is False
        mock_redis.eval.assert_called_once()

    def test_release_only_if_owned(self, mock_redis):
        """Lua script returns 0 when the stored token belongs to someone else."""
        mock_redis.eval.return_value = 0

        lock = DistributedLock("test:key", ttl=30, blocking=False)
        lock.acquire()

        assert lock.release() is False

    def test_release_without_acquire(self, mock_redis):
        lock = DistributedLock("test:key", ttl=30, blocking=False)

        assert lock.release() is False
        mock_redis.eval.assert_not_called()

    def test_context_manager_releases_on_exception(self, mock_redis):
        with pytest.raises(ValueError, match="boom"):
            with DistributedLock("test:key", ttl=30):
                raise ValueError("boom")

        mock_redis.eval.assert_called_once()
