# storefront/utils/retry.py
import redis
import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type


def _retry_on(exc_type, attempts: int, base: float, cap: float):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=base, min=base, max=cap),
        retry=retry_if_exception_type(exc_type),
    )


def http_retry(attempts: int = 3):
    """Retry outbound HTTP calls (notification webhook) on transport errors."""
    return _retry_on(requests.RequestException, attempts, base=0.3, cap=3)


def redis_retry(attempts: int = 3):
    """Retry Redis commands used by the shared duplicate guard."""
    return _retry_on(redis.RedisError, attempts, base=0.2, cap=2)
