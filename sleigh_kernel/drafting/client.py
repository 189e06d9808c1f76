"""
Drafting Client — streams the Elf Compliance Council's memo from the hosted model.

Talks to an OpenAI-compatible chat completions endpoint with remote MCP tool
servers enabled. The stream is exposed as StreamEvents:
- content deltas as they arrive
- a keep-alive whenever the upstream has been silent for `keepalive_seconds`
- a single error event on any upstream failure
- always a final done event

The client is a process-wide lazy singleton configured from the environment.
"""

import asyncio
import logging
import os
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from sleigh_kernel.drafting.stream import StreamEvent, StreamEventKind
from sleigh_kernel.models.compliance import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "openai/gpt-4.1"
BASE_URLS = {
    "production": "https://api.dedaluslabs.ai/v1",
    "development": "http://localhost:8080/v1",
}
MCP_SERVERS = [
    "joerup/exa-mcp",                   # Semantic search
    "simon-liang/brave-search-mcp",     # Web search
]

SYSTEM_PREAMBLE = "\n".join([
    "You are the Elf Compliance Council crafting a festive yet legally sound airspace compliance memo for Santa's sleigh during worldwide Christmas Eve deliveries.",
    "MANDATORY: call MCP server tools to search the live web before drafting.",
    "MANDATORY: ground every claim in real aviation regulations while mentioning Santa, his reindeer team, and the gift-delivery mission; cite source names + URLs from tool results for each factual point.",
    "Keep the tone warmly Christmassy but stay precise and regulatory-focused.",
    "Use this exact outline:",
    "PART I: ISSUE",
    "PART II: FACTS",
    "PART III: ANALYSIS",
    "PART IV: ACTIONS",
    "REFERENCES:",
    "- Bullet list of sourced links or evidence pulled from MCP tool calls.",
])


class DraftingError(RuntimeError):
    """Base error for the drafting collaborator."""
    pass


class DraftingConfigError(DraftingError):
    """Raised when the drafting client cannot be configured."""
    pass


def _first_non_empty(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


class DraftingSettings(BaseModel):
    """Validated drafting client configuration."""

    api_key: str = Field(min_length=1)
    environment: str = "production"         # "development" | "production"
    model: str = DEFAULT_MODEL
    base_url: str = BASE_URLS["production"]
    mcp_servers: List[str] = MCP_SERVERS
    keepalive_seconds: float = Field(gt=0, default=15.0)

    @classmethod
    def from_env(cls) -> "DraftingSettings":
        api_key = _first_non_empty(os.environ.get("DEDALUS_API_KEY"))
        if not api_key:
            raise DraftingConfigError(
                "Missing DEDALUS_API_KEY. Set it in your environment or .env file."
            )

        environment = (os.environ.get("DEDALUS_ENV") or "").strip().lower()
        if environment not in BASE_URLS:
            environment = "production"

        return cls(
            api_key=api_key,
            environment=environment,
            model=_first_non_empty(os.environ.get("DEDALUS_PROVIDER_MODEL")) or DEFAULT_MODEL,
            base_url=(
                _first_non_empty(os.environ.get("DEDALUS_BASE_URL"))
                or BASE_URLS[environment]
            ).rstrip("/"),
        )


class DraftingClient:
    """Streams assistant drafts for a compliance transcript."""

    def __init__(
        self,
        settings: DraftingSettings,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.settings = settings
        self._client = client or AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
        )

    def build_messages(self, transcript: Sequence[ChatMessage]) -> List[Dict[str, str]]:
        """Fixed preamble followed by the transcript."""
        messages = [{"role": "system", "content": SYSTEM_PREAMBLE}]
        messages.extend(m.to_wire() for m in transcript)
        return messages

    async def stream(self, transcript: Sequence[ChatMessage]) -> AsyncIterator[StreamEvent]:
        """Yield events until (and including) the done event."""
        queue: "asyncio.Queue[StreamEvent]" = asyncio.Queue()
        producer = asyncio.create_task(self._pump(list(transcript), queue))
        try:
            while True:
                try:
                    event = await asyncio.wait_for(
                        queue.get(), timeout=self.settings.keepalive_seconds
                    )
                except asyncio.TimeoutError:
                    yield StreamEvent.keepalive()
                    continue
                yield event
                if event.kind == StreamEventKind.DONE:
                    return
        finally:
            producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)

    async def _pump(
        self,
        transcript: List[ChatMessage],
        queue: "asyncio.Queue[StreamEvent]",
    ) -> None:
        try:
            response = await self._client.chat.completions.create(
                model=self.settings.model,
                messages=self.build_messages(transcript),
                stream=True,
                extra_body={"mcp_servers": self.settings.mcp_servers},
            )
            async for chunk in response:
                text = _chunk_text(chunk)
                if text:
                    await queue.put(StreamEvent.delta(text))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Upstream failures end the stream with an error payload
            logger.exception("Drafting stream failed")
            await queue.put(StreamEvent.error(str(exc) or "Unknown error"))
        await queue.put(StreamEvent.done())


def _chunk_text(chunk: Any) -> str:
    parts = []
    for choice in getattr(chunk, "choices", None) or []:
        delta = getattr(choice, "delta", None)
        content = getattr(delta, "content", None)
        if isinstance(content, str):
            parts.append(content)
    return "".join(parts)


_cached_client: Optional[DraftingClient] = None


def get_drafting_client() -> DraftingClient:
    """Build the process-wide client on first use."""
    global _cached_client
    if _cached_client is None:
        _cached_client = DraftingClient(DraftingSettings.from_env())
    return _cached_client


def reset_drafting_client_for_tests() -> None:
    global _cached_client
    _cached_client = None
