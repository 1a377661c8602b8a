"""
FastAPI dependencies for the database and the scan pipeline.
"""
from pathlib import Path
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from seopilot.config import settings
from seopilot.core.exceptions import BadRequestError
from seopilot.database import get_db
from seopilot.integrations.llm import LLMIssueAnalyzer, get_llm_client
from seopilot.services.frameworks import HandlerRegistry, build_default_registry
from seopilot.services.pipeline import SEOPipeline, resolve_repo_path

_registry: HandlerRegistry | None = None


def get_registry() -> HandlerRegistry:
    global _registry
    if _registry is None:
        _registry = build_default_registry()
    return _registry


def get_pipeline(registry: Annotated[HandlerRegistry, Depends(get_registry)]) -> SEOPipeline:
    supplemental = None
    if settings.SUPPLEMENTAL_ANALYSIS_ENABLED:
        supplemental = LLMIssueAnalyzer(get_llm_client())
    return SEOPipeline(registry=registry, supplemental=supplemental)


def repo_dir(repo_path: str) -> Path:
    """Resolve a request's repo_path under REPOS_ROOT or fail with 400."""
    try:
        return resolve_repo_path(repo_path)
    except ValueError as e:
        raise BadRequestError(str(e)) from e


DbSession = Annotated[AsyncSession, Depends(get_db)]
Pipeline = Annotated[SEOPipeline, Depends(get_pipeline)]
Registry = Annotated[HandlerRegistry, Depends(get_registry)]
