# storefront/utils/retry.py
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    wait_random,
    retry_if_exception_type,
)
import requests
import redis

from storefront.utils.settings import CART_WRITE_ATTEMPTS


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def conflict_retry(exc_type):
    # read-modify-write koszyka powtarzany od zera po przegranym sprawdzeniu wersji
    return retry(
        reraise=True,
        stop=stop_after_attempt(CART_WRITE_ATTEMPTS),
        wait=wait_random(min=0, max=0.05),
        retry=retry_if_exception_type(exc_type),
    )
