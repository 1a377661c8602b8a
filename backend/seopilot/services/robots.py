"""
robots.txt generation, with optional blocking of AI crawlers.
"""

from dataclasses import dataclass, field

from seopilot.services.frameworks import HandlerRegistry
from seopilot.services.frameworks.base import generate_standard_robots
from seopilot.services.types import CodebaseProfile

AI_CRAWLERS = [
    "GPTBot",
    "ChatGPT-User",
    "ClaudeBot",
    "PerplexityBot",
    "Bytespider",
    "Google-Extended",
    "CCBot",
]


@dataclass
class RobotsConfig:
    disallow_paths: list[str] = field(default_factory=list)
    block_ai_crawlers: bool = False
    ai_crawlers: list[str] = field(default_factory=lambda: list(AI_CRAWLERS))


class RobotsGenerator:
    def __init__(self, config: RobotsConfig | None = None):
        self.config = config or RobotsConfig()

    def generate(self, domain: str) -> str:
        """Plain robots.txt text."""
        content = generate_standard_robots(domain.rstrip("/"), self.config.disallow_paths)
        return content + self._ai_crawler_groups()

    def generate_for_profile(
        self, domain: str, profile: CodebaseProfile, registry: HandlerRegistry
    ) -> tuple[str, str]:
        """(path, content) in the project's own robots format."""
        handler = registry.get(profile.framework)
        path = handler.get_robots_path()
        content = handler.generate_robots_code(domain.rstrip("/"))
        if path.endswith(".txt"):
            content += self._ai_crawler_groups()
        return path, content

    def _ai_crawler_groups(self) -> str:
        if not self.config.block_ai_crawlers:
            return ""
        groups = [f"User-agent: {bot}\nDisallow: /" for bot in self.config.ai_crawlers]
        return "\n\n" + "\n\n".join(groups)
