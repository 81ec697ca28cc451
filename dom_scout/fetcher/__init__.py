"""dom_scout.fetcher: Загрузка страниц через прокси с повторными попытками."""

from .fetcher import ProxyFetcher
from .retry import RetryPolicy, parse_retry_after

__all__ = ["ProxyFetcher", "RetryPolicy", "parse_retry_after"]
