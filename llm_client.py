"""
LLM client for the optional executive summary (OpenAI Chat Completions).

Failures never propagate: generate_exec_summary returns (None, error) and
OpenAINarrator turns that into an empty summary.
"""

import logging
from dataclasses import dataclass

from openai import OpenAI, OpenAIError

from config import DEFAULT_MODEL, DEFAULT_NARRATIVE_TIMEOUT, Settings
from metrics import MetricsReport
from prompts import SYSTEM_PROMPT, build_user_prompt

logger = logging.getLogger(__name__)

MAX_TOKENS = 300
TEMPERATURE = 0.2


@dataclass
class LLMUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    request_count: int = 0


_usage = LLMUsage()


def get_usage() -> LLMUsage:
    return _usage


def generate_exec_summary(
    report: MetricsReport,
    *,
    api_key: str | None,
    model: str = DEFAULT_MODEL,
    timeout: float = DEFAULT_NARRATIVE_TIMEOUT,
    client: OpenAI | None = None,
) -> tuple[str | None, str | None]:
    if client is None:
        if not api_key:
            return None, "OPENAI_API_KEY not found. Add it to .env."
        client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(report)},
            ],
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
            timeout=timeout,
        )
    except OpenAIError as e:
        return None, f"API error: {str(e)}"

    choice = response.choices[0] if response.choices else None
    if not choice or not choice.message:
        return None, "Empty response from API"

    text = choice.message.content or ""

    if response.usage:
        _usage.prompt_tokens += response.usage.prompt_tokens or 0
        _usage.completion_tokens += response.usage.completion_tokens or 0
        _usage.total_tokens += response.usage.total_tokens or 0
    _usage.request_count += 1

    return text.strip(), None


class OpenAINarrator:
    """Narrator callable: report -> summary text, "" when unavailable."""

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_NARRATIVE_TIMEOUT,
        client: OpenAI | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    def __call__(self, report: MetricsReport) -> str:
        text, err = generate_exec_summary(
            report,
            api_key=self.api_key,
            model=self.model,
            timeout=self.timeout,
            client=self._client,
        )
        if err:
            logger.warning("Executive summary unavailable: %s", err)
            return ""
        return text or ""


def build_narrator(settings: Settings) -> OpenAINarrator | None:
    if not settings.openai_api_key:
        return None
    return OpenAINarrator(
        settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.narrative_timeout,
    )
