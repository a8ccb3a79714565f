import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable
from core.http_client import HTTPClient
from core.models import ParsedFeed

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

class BaseFetcher(ABC):
    """
    One fetcher per upstream kind. Fetchers never raise to the caller:
    a failed source degrades to a ParsedFeed with no items.
    """

    def __init__(self, http_client: HTTPClient, sleep: Sleep = asyncio.sleep):
        self.http_client = http_client
        self.sleep = sleep
        self.name = self.__class__.__name__

    @abstractmethod
    async def fetch_feed(self, *args, **kwargs) -> ParsedFeed:
        """
        Main entry point for the fetcher.
        Returns a ParsedFeed, possibly empty.
        """
        pass

    @staticmethod
    def empty_feed(name: str, origin: str) -> ParsedFeed:
        return ParsedFeed(name=name, origin=origin, items=[])
