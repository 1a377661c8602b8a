"""
SQLAlchemy models for SEOpilot.
"""
from seopilot.models.base import Base, BaseModel
from seopilot.models.scan import CodebaseScan
from seopilot.models.change import Change, SearchMetricsDaily

__all__ = [
    "Base",
    "BaseModel",
    "CodebaseScan",
    "Change",
    "SearchMetricsDaily",
]
