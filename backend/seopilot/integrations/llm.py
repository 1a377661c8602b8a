"""
LLM Integration Client

Chat completions against:
- Local LLM via LM Studio (OpenAI-compatible API)
- OpenAI API
- Anthropic API

Used for the supplemental issue pass and for page-level code fixes.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from seopilot.config import settings
from seopilot.services.types import (
    CodebaseProfile,
    CodeFix,
    FixAction,
    IssueSeverity,
    SEOIssue,
    issue_id,
)

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
INITIAL_RETRY_DELAY = 1.0


class LLMProvider(str, Enum):
    LOCAL = "local"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class Message(BaseModel):
    role: str  # system, user, assistant
    content: str


class LLMResponse(BaseModel):
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None


class LLMResponseError(ValueError):
    """The model reply could not be turned into the expected structure."""


@dataclass
class LLMConfig:
    provider: LLMProvider
    base_url: str
    api_key: str
    model: str
    temperature: float = 0.3
    max_tokens: int = 4096
    timeout: float = 120.0

    @classmethod
    def from_settings(cls) -> "LLMConfig":
        return cls(
            provider=LLMProvider(settings.LLM_PROVIDER),
            base_url=settings.LLM_BASE_URL.rstrip("/"),
            api_key=settings.LLM_API_KEY,
            model=settings.LLM_MODEL,
            timeout=settings.LLM_TIMEOUT,
        )


def parse_json_reply(content: str) -> Any:
    """Parse a model reply, tolerating a surrounding markdown code fence."""
    cleaned = content.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    cleaned = cleaned.strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Failed to parse model reply as JSON: {e}. Reply: {cleaned[:500]}") from e


class LLMClient:
    """Unified LLM client supporting multiple providers."""

    def __init__(self, config: Optional[LLMConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or LLMConfig.from_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._client

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}

        if self.config.provider == LLMProvider.OPENAI:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        elif self.config.provider == LLMProvider.ANTHROPIC:
            headers["x-api-key"] = self.config.api_key
            headers["anthropic-version"] = "2023-06-01"
        elif self.config.api_key and self.config.api_key != "not-needed":
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        return headers

    async def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Send a chat request, retrying with backoff when rate limited."""
        delay = INITIAL_RETRY_DELAY
        for attempt in range(MAX_RETRIES):
            try:
                if self.config.provider == LLMProvider.ANTHROPIC:
                    return await self._chat_anthropic(messages, temperature, max_tokens)
                return await self._chat_openai_compatible(messages, temperature, max_tokens)
            except httpx.HTTPStatusError as e:
                if e.response.status_code != 429 or attempt == MAX_RETRIES - 1:
                    raise
                logger.warning(f"[LLM] Rate limited, retrying in {delay:.0f}s")
                await asyncio.sleep(delay)
                delay *= 2
        raise RuntimeError("unreachable")

    async def _chat_openai_compatible(
        self,
        messages: List[Message],
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> LLMResponse:
        client = await self._get_client()
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }

        response = await client.post(f"{self.config.base_url}/chat/completions", json=payload)
        response.raise_for_status()
        data = response.json()

        choice = data["choices"][0]
        return LLMResponse(
            content=choice["message"]["content"],
            model=data.get("model", self.config.model),
            usage=data.get("usage"),
            finish_reason=choice.get("finish_reason"),
        )

    async def _chat_anthropic(
        self,
        messages: List[Message],
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> LLMResponse:
        client = await self._get_client()

        # Anthropic takes the system prompt outside the message list
        system_message = None
        chat_messages = []
        for m in messages:
            if m.role == "system":
                system_message = m.content
            else:
                chat_messages.append({"role": m.role, "content": m.content})

        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": chat_messages,
            "max_tokens": max_tokens or self.config.max_tokens,
            "temperature": self.config.temperature if temperature is None else temperature,
        }
        if system_message:
            payload["system"] = system_message

        response = await client.post(f"{self.config.base_url}/messages", json=payload)
        response.raise_for_status()
        data = response.json()

        usage = data.get("usage", {})
        return LLMResponse(
            content=data["content"][0]["text"] if data.get("content") else "",
            model=data.get("model", self.config.model),
            usage={
                "prompt_tokens": usage.get("input_tokens", 0),
                "completion_tokens": usage.get("output_tokens", 0),
            },
            finish_reason=data.get("stop_reason"),
        )

    async def complete_json(self, system_prompt: str, user_prompt: str) -> Any:
        response = await self.chat(
            [
                Message(role="system", content=system_prompt),
                Message(role="user", content=user_prompt),
            ]
        )
        return parse_json_reply(response.content)

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


SEO_ANALYZER_PROMPT = """You are a senior SEO engineer analyzing a website's codebase.

Find SEO issues that simple rules miss, for example:
- Missing Twitter Card tags
- Missing canonical URLs
- Missing hreflang for internationalized sites
- Poor heading hierarchy (missing H1, multiple H1s, skipped levels)
- Missing favicon or touch icons

For each issue return an object with:
- type: short kebab-case issue type (e.g. "missing-canonical")
- severity: "critical" (blocks indexing), "warning" (hurts ranking) or "info" (minor improvement)
- page: the page route if the issue belongs to one page, otherwise null
- file: the affected file path, if known
- description: clear explanation of the issue
- recommendation: specific fix recommendation
- auto_fixable: whether a code change can fix it

Return a JSON array. Return ONLY valid JSON, no markdown code blocks."""

CODE_FIXER_PROMPT = """You are an expert developer who fixes SEO issues in code.

Given an SEO issue and the current file content, generate the minimal fix.

Rules:
1. Match the existing code style exactly (indentation, quotes, semicolons)
2. Only change what's necessary to fix the issue
3. For modifications, provide exact search/replace strings
4. Preserve all existing functionality
5. Use the project's own meta mechanism:
   - Next.js App Router: generateMetadata or the Metadata export
   - Next.js Pages: next/head
   - Astro: the <head> element or frontmatter
   - Nuxt: useSeoMeta or useHead
   - Remix: the meta export
6. Don't break existing imports or exports

Return one JSON object:
{
  "file": "the file path",
  "action": "create" | "modify" | "delete",
  "search": "exact string to find (modify only)",
  "replace": "replacement string (modify only)",
  "content": "full file content (create only)",
  "description": "brief explanation for the commit message"
}

Return ONLY valid JSON, no markdown code blocks.
The search string must match EXACTLY what is in the file, including whitespace and newlines."""


class LLMIssueAnalyzer:
    """Supplemental issue pass backed by an LLM."""

    def __init__(self, client: LLMClient):
        self.client = client

    async def find_issues(self, profile: CodebaseProfile) -> list[SEOIssue]:
        pages = [
            {
                "path": p.path,
                "file": p.file_path,
                "title": p.title,
                "description": p.description,
                "has_og_image": p.has_og_image,
                "has_schema": p.has_schema,
                "word_count": p.word_count,
            }
            for p in profile.pages
        ]
        user_prompt = (
            f"Framework: {profile.framework.value}\n"
            f"Meta handling: {profile.seo_patterns.meta_handling.value}\n\n"
            f"Pages:\n{json.dumps(pages, indent=2)}"
        )
        reply = await self.client.complete_json(SEO_ANALYZER_PROMPT, user_prompt)
        if not isinstance(reply, list):
            raise LLMResponseError("Expected a JSON array of issues")

        issues = [self._to_issue(item) for item in reply if isinstance(item, dict) and item.get("type")]
        logger.info(f"[LLM] Supplemental analysis returned {len(issues)} issues for {profile.repo_id}")
        return issues

    @staticmethod
    def _to_issue(item: dict) -> SEOIssue:
        try:
            severity = IssueSeverity(item.get("severity", "info"))
        except ValueError:
            severity = IssueSeverity.INFO
        page = item.get("page") or None
        return SEOIssue(
            id=issue_id(item["type"], page),
            type=item["type"],
            severity=severity,
            description=item.get("description", ""),
            recommendation=item.get("recommendation", ""),
            auto_fixable=bool(item.get("auto_fixable", False)),
            page=page,
            file=item.get("file") or None,
        )


class LLMFixGenerator:
    """Asks the model for a single CodeFix for one issue."""

    def __init__(self, client: LLMClient):
        self.client = client

    async def generate_fix(self, issue: SEOIssue, profile: CodebaseProfile, file_content: str) -> CodeFix:
        user_prompt = (
            f"Issue:\n{json.dumps(issue.to_dict(), indent=2)}\n\n"
            f"Framework: {profile.framework.value}\n"
            f"Meta handling: {profile.seo_patterns.meta_handling.value}\n\n"
            f"Current file content:\n```\n{file_content}\n```"
        )
        reply = await self.client.complete_json(CODE_FIXER_PROMPT, user_prompt)
        if not isinstance(reply, dict) or "action" not in reply:
            raise LLMResponseError("Expected a JSON object with an action")

        try:
            action: FixAction | str = FixAction(reply["action"])
        except ValueError:
            # Left for the applier to reject
            action = reply["action"]

        fix = CodeFix(
            issue_id=issue.id,
            file=reply.get("file") or issue.file or "",
            action=action,
            description=reply.get("description", ""),
            search=reply.get("search"),
            replace=reply.get("replace"),
            content=reply.get("content"),
        )
        logger.info(f"[LLM] Generated fix for {issue.id} in {fix.file}")
        return fix


_default_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create the default LLM client."""
    global _default_client
    if _default_client is None:
        _default_client = LLMClient()
    return _default_client
