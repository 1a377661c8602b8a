"""
Framework handler registry.

The registry is an explicit value: build it once with
`build_default_registry()` and pass it to whatever needs handlers.
"""
import logging

from seopilot.core.exceptions import HandlerNotRegisteredError
from seopilot.services.frameworks.astro import AstroHandler
from seopilot.services.frameworks.base import (
    ExtractedMeta,
    FrameworkHandler,
    MetaInput,
    SchemaLocation,
    file_path_to_url_path,
)
from seopilot.services.frameworks.html import HTMLHandler
from seopilot.services.frameworks.nextjs_app import NextAppHandler
from seopilot.services.frameworks.nextjs_pages import NextPagesHandler
from seopilot.services.types import FrameworkType

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Maps frameworks to handlers, with an optional fallback handler."""

    def __init__(self, fallback: FrameworkType | None = FrameworkType.HTML):
        self._handlers: dict[FrameworkType, FrameworkHandler] = {}
        self.fallback = fallback

    def register(self, framework: FrameworkType, handler: FrameworkHandler) -> None:
        self._handlers[framework] = handler

    def has_handler(self, framework: FrameworkType) -> bool:
        return framework in self._handlers

    def supported_frameworks(self) -> list[FrameworkType]:
        return list(self._handlers)

    def get(self, framework: FrameworkType) -> FrameworkHandler:
        handler = self._handlers.get(framework)
        if handler is not None:
            return handler

        if self.fallback is None or self.fallback not in self._handlers:
            raise HandlerNotRegisteredError(framework.value)

        logger.warning(
            f"[SCAN] No specific handler for framework '{framework.value}', "
            f"falling back to {self.fallback.value} handler"
        )
        return self._handlers[self.fallback]


def build_default_registry() -> HandlerRegistry:
    registry = HandlerRegistry(fallback=FrameworkType.HTML)
    registry.register(FrameworkType.NEXTJS_APP, NextAppHandler())
    registry.register(FrameworkType.NEXTJS_PAGES, NextPagesHandler())
    registry.register(FrameworkType.ASTRO, AstroHandler())
    registry.register(FrameworkType.HTML, HTMLHandler())
    return registry


__all__ = [
    "AstroHandler",
    "ExtractedMeta",
    "FrameworkHandler",
    "HTMLHandler",
    "HandlerRegistry",
    "MetaInput",
    "NextAppHandler",
    "NextPagesHandler",
    "SchemaLocation",
    "build_default_registry",
    "file_path_to_url_path",
]
