"""
Pydantic schemas for the SEOpilot API.
"""
from seopilot.schemas.common import (
    BaseSchema,
    IDSchema,
    WarningSchema,
    ErrorResponse,
)
from seopilot.schemas.scan import ScanRequest, ScanResponse
from seopilot.schemas.fix import (
    CodeFixSchema,
    FixApplyRequest,
    FixApplyResponse,
    FixPlanRequest,
    FixPlanResponse,
)
from seopilot.schemas.change import (
    ChangeCreate,
    ChangeResponse,
    MeasureImpactResponse,
    DailyMetricsCreate,
    DailyMetricsResponse,
    PageMetrics,
    QueryMetrics,
)
