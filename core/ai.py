import google.generativeai as genai
import asyncio
import httpx
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence
from tenacity import AsyncRetrying, RetryError, stop_after_attempt
from core.config import Config, Secrets
from core.http_client import DEFAULT_TIMEOUT, HTTPClient
from core.models import Article, SummaryMap

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

FALLBACK_CHARS = 150
SUMMARY_UNAVAILABLE = "Summary unavailable"


@dataclass
class RunContext:
    """
    Per-run summarization state. Built fresh at the start of every run
    and passed down explicitly.
    """
    quota_exceeded: bool = False
    skip_after_quota: bool = False

    def reset(self):
        self.quota_exceeded = False


def is_quota_error(exc: Optional[BaseException]) -> bool:
    if exc is None:
        return False
    for attr in ("code", "status", "status_code"):
        if getattr(exc, attr, None) == 429:
            return True
    message = str(exc).lower()
    return "429" in message or "quota" in message


def build_prompt(article: Article) -> str:
    body = article.content_snippet or (article.full_content or "")[:500]
    return f"""Summarize the following article in 2-3 sentences. Focus on the key insight or value:

Title: {article.title}
{body}

Summary:"""


def fallback_summary(article: Article) -> str:
    return (article.content_snippet or "")[:FALLBACK_CHARS] or SUMMARY_UNAVAILABLE


class SummaryProvider(ABC):
    name: str = "provider"

    @abstractmethod
    async def summarize(self, article: Article, ctx: RunContext) -> Optional[str]:
        """Return summary text, or None/empty when this provider has nothing."""


class GeminiProvider(SummaryProvider):
    name = "gemini"
    MAX_ATTEMPTS = 3

    def __init__(self, api_key: str, model_name: str = "gemini-2.0-flash", model=None, sleep: Sleep = asyncio.sleep):
        self.model_name = model_name
        self.sleep = sleep
        if model is not None:
            self.model = model
        elif api_key:
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(model_name)
            logger.info(f"Gemini summaries enabled, model: {model_name}")
        else:
            logger.warning("No GEMINI_API_KEY found. Gemini summaries will be disabled.")
            self.model = None

    @staticmethod
    def _backoff(retry_state) -> float:
        """attempt x 3s after a quota failure, attempt x 2s after anything else."""
        exc = retry_state.outcome.exception()
        step = 3 if is_quota_error(exc) else 2
        return retry_state.attempt_number * step

    @staticmethod
    def _log_retry(retry_state):
        exc = retry_state.outcome.exception()
        kind = "Quota hit" if is_quota_error(exc) else "Gemini error"
        logger.warning(
            f"{kind}: {str(exc)[:100]}. Retry {retry_state.attempt_number}/{GeminiProvider.MAX_ATTEMPTS - 1} "
            f"in {retry_state.next_action.sleep:.0f}s..."
        )

    async def summarize(self, article: Article, ctx: RunContext) -> Optional[str]:
        if not self.model:
            return None
        if ctx.quota_exceeded and ctx.skip_after_quota:
            logger.debug(f"Skipping Gemini for '{article.title[:50]}', quota already exceeded")
            return None

        prompt = build_prompt(article)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.MAX_ATTEMPTS),
                wait=self._backoff,
                before_sleep=self._log_retry,
                sleep=self.sleep,
            ):
                with attempt:
                    response = await self.model.generate_content_async(
                        prompt, request_options={"timeout": DEFAULT_TIMEOUT}
                    )
                    return (response.text or "").strip()
        except RetryError as e:
            exc = e.last_attempt.exception()
            if is_quota_error(exc):
                ctx.quota_exceeded = True
                logger.warning(f"Gemini quota exhausted for '{article.title[:50]}'")
            else:
                logger.warning(f"Gemini summarization failed for '{article.title[:50]}': {str(exc)[:100]}")
        return None


class OpenAIProvider(SummaryProvider):
    """Single chat-completion call, no retry loop."""
    name = "openai"
    API_URL = "https://api.openai.com/v1/chat/completions"

    def __init__(self, http_client: HTTPClient, api_key: str, model_name: str = "gpt-4o-mini"):
        self.http_client = http_client
        self.api_key = api_key
        self.model_name = model_name
        if not api_key:
            logger.info("No OPENAI_API_KEY found. OpenAI fallback disabled.")

    async def summarize(self, article: Article, ctx: RunContext) -> Optional[str]:
        if not self.api_key:
            return None

        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": "You are a helpful assistant that summarizes articles."},
                {"role": "user", "content": build_prompt(article)},
            ],
            "max_tokens": 100,
        }
        try:
            response = await self.http_client.post_json(
                self.API_URL, payload, headers={"Authorization": f"Bearer {self.api_key}"}
            )
        except httpx.HTTPError as e:
            logger.warning(f"OpenAI summarization error: {e}")
            return None

        if not response.is_success:
            logger.warning(f"OpenAI API error: {response.status_code} - {response.text[:200]}")
            return None

        try:
            choices = response.json().get("choices") or []
            content = (choices[0].get("message") or {}).get("content") if choices else None
        except (ValueError, AttributeError) as e:
            logger.warning(f"OpenAI returned an unreadable body: {e}")
            return None
        return (content or "").strip() or None


class Summarizer:
    """
    Tries each provider in order and falls back to the article snippet.
    Articles are processed in groups of BATCH_SIZE with a pause between groups.
    """
    BATCH_SIZE = 2
    BATCH_DELAY_SECONDS = 2.0

    def __init__(self, providers: Sequence[SummaryProvider], sleep: Sleep = asyncio.sleep):
        self.providers = list(providers)
        self.sleep = sleep

    async def summarize_article(self, article: Article, ctx: RunContext) -> str:
        for provider in self.providers:
            try:
                summary = await provider.summarize(article, ctx)
            except Exception as e:
                logger.warning(f"Provider {provider.name} failed for '{article.title[:50]}': {e}")
                summary = None
            if summary:
                return summary
        logger.debug(f"Using snippet fallback for '{article.title[:50]}'")
        return fallback_summary(article)

    async def summarize_articles(self, articles: Sequence[Article], ctx: RunContext) -> SummaryMap:
        summaries: SummaryMap = {}
        articles = list(articles)
        for start in range(0, len(articles), self.BATCH_SIZE):
            batch = articles[start:start + self.BATCH_SIZE]
            results = await asyncio.gather(*(self.summarize_article(a, ctx) for a in batch))
            for article, summary in zip(batch, results):
                summaries[article.link] = summary

            if start + self.BATCH_SIZE < len(articles):
                await self.sleep(self.BATCH_DELAY_SECONDS)

        logger.info(f"Summarized {len(summaries)} articles")
        return summaries


def build_summarizer(config: Config, secrets: Secrets, http_client: HTTPClient, sleep: Sleep = asyncio.sleep) -> Summarizer:
    """Order providers by the configured preference; the other one becomes the fallback."""
    gemini = GeminiProvider(secrets.gemini_api_key, config.llm.model, sleep=sleep)
    openai = OpenAIProvider(http_client, secrets.openai_api_key, config.llm.openai_model)
    providers: List[SummaryProvider] = [gemini, openai]
    if config.llm.provider == "openai":
        providers.reverse()
    return Summarizer(providers, sleep=sleep)
