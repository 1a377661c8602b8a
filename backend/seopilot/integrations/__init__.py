"""
External integrations for SEOpilot.

- filesystem: working-tree reader for the profiler
- git: commit lookup for checked-out repositories
- llm: LLM client for supplemental analysis and fixes (local/OpenAI/Anthropic)
"""

from seopilot.integrations.filesystem import FileReader, LocalFileReader
from seopilot.integrations.git import get_head_commit
from seopilot.integrations.llm import (
    LLMClient,
    LLMFixGenerator,
    LLMIssueAnalyzer,
    LLMResponse,
    Message,
    get_llm_client,
)

__all__ = [
    "FileReader",
    "LocalFileReader",
    "get_head_commit",
    "LLMClient",
    "LLMFixGenerator",
    "LLMIssueAnalyzer",
    "LLMResponse",
    "Message",
    "get_llm_client",
]
