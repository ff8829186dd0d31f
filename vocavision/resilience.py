"""
Circuit breakers for outbound calls (Anthropic, Stability AI, Cloudinary).

A breaker starts CLOSED. Once its rolling window holds at least
``volume_threshold`` requests and ``failure_threshold`` consecutive failures
have been seen, it OPENs and rejects calls for ``timeout`` seconds. The first
call after that runs in HALF_OPEN: ``success_threshold`` successes close the
circuit again, a single failure re-opens it.
"""
import enum
import logging
import time

logger = logging.getLogger(__name__)


class CircuitState(str, enum.Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitOpenError(Exception):
    def __init__(self, name, retry_in):
        super().__init__(f"Circuit breaker is OPEN for {name}. Service temporarily unavailable.")
        self.name = name
        self.retry_in = retry_in


class CircuitBreaker:
    def __init__(self, name, failure_threshold=5, success_threshold=2, timeout=60.0,
                 monitoring_period=60.0, volume_threshold=10, clock=time.time):
        self.name = name
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.timeout = timeout
        self.monitoring_period = monitoring_period
        self.volume_threshold = volume_threshold
        self._clock = clock

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.next_attempt = clock()
        self._history = []  # (timestamp, success)

    async def call(self, fn, *args, fallback=None, **kwargs):
        if self.state == CircuitState.OPEN:
            now = self._clock()
            if now >= self.next_attempt:
                logger.info("Circuit %s: transitioning to HALF_OPEN", self.name)
                self.state = CircuitState.HALF_OPEN
                self.success_count = 0
            else:
                retry_in = self.next_attempt - now
                logger.warning("Circuit %s: OPEN, request blocked, retry in %.0fs", self.name, retry_in)
                if fallback is not None:
                    return fallback()
                raise CircuitOpenError(self.name, retry_in)

        try:
            result = await fn(*args, **kwargs)
        except Exception:
            self._on_failure()
            if fallback is not None:
                logger.info("Circuit %s: using fallback after error", self.name)
                return fallback()
            raise

        self._on_success()
        return result

    def _record(self, success):
        now = self._clock()
        self._history.append((now, success))
        cutoff = now - self.monitoring_period
        self._history = [r for r in self._history if r[0] >= cutoff]

    def _on_success(self):
        self._record(True)
        if self.state == CircuitState.HALF_OPEN:
            self.success_count += 1
            logger.info("Circuit %s: success in HALF_OPEN (%d/%d)",
                        self.name, self.success_count, self.success_threshold)
            if self.success_count >= self.success_threshold:
                self._close()
        elif self.state == CircuitState.CLOSED:
            self.failure_count = 0

    def _on_failure(self):
        self._record(False)
        self.failure_count += 1
        if self.state == CircuitState.HALF_OPEN:
            logger.warning("Circuit %s: failure in HALF_OPEN, opening circuit", self.name)
            self._open()
        elif self.state == CircuitState.CLOSED:
            logger.warning("Circuit %s: failure count %d/%d",
                           self.name, self.failure_count, self.failure_threshold)
            self._evaluate()

    def _evaluate(self):
        total = len(self._history)
        if total < self.volume_threshold:
            return
        if self.failure_count >= self.failure_threshold:
            failures = sum(1 for _, ok in self._history if not ok)
            logger.error("Circuit %s: opening circuit, %d/%d failures", self.name, failures, total)
            self._open()

    def _open(self):
        self.state = CircuitState.OPEN
        self.next_attempt = self._clock() + self.timeout
        self.failure_count = 0
        self.success_count = 0

    def _close(self):
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        logger.info("Circuit %s: CLOSED, service recovered", self.name)

    def reset(self):
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self._history = []
        self.next_attempt = self._clock()
        logger.info("Circuit %s: reset", self.name)

    def metrics(self) -> dict:
        cutoff = self._clock() - self.monitoring_period
        recent = [r for r in self._history if r[0] >= cutoff]
        total = len(recent)
        failures = sum(1 for _, ok in recent if not ok)
        return {
            "name": self.name,
            "state": self.state.value,
            "totalRequests": total,
            "failures": failures,
            "successes": total - failures,
            "failureRate": round(failures / total * 100) if total else 0,
            "failureCount": self.failure_count,
            "successCount": self.success_count,
            "nextAttempt": self.next_attempt if self.state == CircuitState.OPEN else None,
        }


class CircuitBreakerRegistry:
    def __init__(self, **config):
        self._config = config
        self._breakers = {}

    def get(self, name) -> CircuitBreaker:
        if name not in self._breakers:
            self._breakers[name] = CircuitBreaker(name, **self._config)
        return self._breakers[name]

    async def call(self, name, fn, *args, fallback=None, **kwargs):
        return await self.get(name).call(fn, *args, fallback=fallback, **kwargs)

    def all_metrics(self):
        return [b.metrics() for b in self._breakers.values()]

    def reset(self, name):
        breaker = self._breakers.get(name)
        if breaker:
            breaker.reset()
        return breaker is not None

    def reset_all(self):
        for breaker in self._breakers.values():
            breaker.reset()


breakers = CircuitBreakerRegistry(
    failure_threshold=5,
    success_threshold=2,
    timeout=60.0,
    monitoring_period=60.0,
    volume_threshold=10,
)
