import time
import threading
from typing import Callable, Dict, Optional


class RateLimiter:
    """Token bucket.

    `burst` is the bucket capacity. With burst=1 successive consume()
    calls are spaced at least 60 / requests_per_minute seconds apart.
    """

    def __init__(
        self,
        requests_per_minute: Optional[float] = None,
        burst: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.requests_per_minute = float(requests_per_minute if requests_per_minute is not None else 150)
        if self.requests_per_minute <= 0:
            raise ValueError(f"requests_per_minute must be > 0, got {requests_per_minute}")
        self.capacity = float(burst if burst is not None else self.requests_per_minute)
        self.window_seconds = 60.0
        self.lock = threading.RLock()
        self._clock = clock
        self._sleep = sleep

        self.tokens = self.capacity  # Start with full bucket
        self.last_update = self._clock()

        self.total_consumed = 0
        self.total_waited = 0.0

    @classmethod
    def from_interval(cls, min_interval_seconds: float, **kwargs) -> "RateLimiter":
        """Limiter that allows one call per interval, no bursts."""
        if min_interval_seconds <= 0:
            return cls(requests_per_minute=float('inf'), burst=1, **kwargs)
        return cls(requests_per_minute=60.0 / min_interval_seconds, burst=1, **kwargs)

    def can_execute(self) -> bool:
        with self.lock:
            self._refill_tokens()
            return self.tokens >= 1.0

    def consume(self, count: int = 1) -> float:
        with self.lock:
            self._refill_tokens()
            wait_time = self._calculate_wait_time(count) if self.tokens < count else 0.0

        # Wait outside the lock
        if wait_time > 0:
            self._sleep(wait_time)
            with self.lock:
                self.total_waited += wait_time

        with self.lock:
            self._refill_tokens()
            # May dip below zero if another thread got there first; refill corrects it
            self.tokens -= count
            self.total_consumed += count

        return wait_time

    def try_consume(self, count: int = 1) -> bool:
        with self.lock:
            self._refill_tokens()

            if self.tokens >= count:
                self.tokens -= count
                self.total_consumed += count
                return True
            return False

    def _refill_tokens(self):
        now = self._clock()
        elapsed = max(0.0, now - self.last_update)

        if self.requests_per_minute == float('inf'):
            self.tokens = self.capacity
        else:
            tokens_to_add = (elapsed / self.window_seconds) * self.requests_per_minute
            self.tokens = min(self.tokens + tokens_to_add, self.capacity)

        self.last_update = now

    def _calculate_wait_time(self, tokens_needed: int) -> float:
        if self.requests_per_minute == float('inf'):
            return 0.0
        tokens_short = tokens_needed - self.tokens
        seconds_per_token = self.window_seconds / self.requests_per_minute
        return tokens_short * seconds_per_token

    def time_until_token(self) -> float:
        with self.lock:
            self._refill_tokens()
            if self.tokens >= 1.0:
                return 0.0
            return self._calculate_wait_time(1)

    def get_status(self) -> Dict:
        with self.lock:
            self._refill_tokens()
            return {
                'tokens_available': int(self.tokens),
                'tokens_limit': self.capacity,
                'requests_per_minute': self.requests_per_minute,
                'time_until_token_sec': self.time_until_token(),
                'total_consumed': self.total_consumed,
                'total_waited_sec': self.total_waited,
            }

    def reset(self):
        with self.lock:
            self.tokens = self.capacity
            self.last_update = self._clock()
            self.total_consumed = 0
            self.total_waited = 0.0
