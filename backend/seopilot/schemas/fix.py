"""
Fix schemas.
"""
from pydantic import Field

from seopilot.schemas.common import BaseSchema, WarningSchema
from seopilot.services.types import CodeFix, FixAction


class CodeFixSchema(BaseSchema):
    """One mutation of a repository file."""

    issue_id: str
    file: str
    action: str = Field(description="create, modify or delete")
    description: str = ""
    search: str | None = None
    replace: str | None = None
    content: str | None = None

    def to_fix(self) -> CodeFix:
        try:
            action: FixAction | str = FixAction(self.action)
        except ValueError:
            action = self.action
        return CodeFix(
            issue_id=self.issue_id,
            file=self.file,
            action=action,
            description=self.description,
            search=self.search,
            replace=self.replace,
            content=self.content,
        )

    @classmethod
    def from_fix(cls, fix: CodeFix) -> "CodeFixSchema":
        return cls(**fix.to_dict())


class FixApplyRequest(BaseSchema):
    """Apply fixes to a repository; record Changes when commit_sha is given."""

    repo_id: str = Field(min_length=1, max_length=255)
    repo_path: str = Field(min_length=1)
    fixes: list[CodeFixSchema]
    commit_sha: str | None = Field(default=None, max_length=64)


class FixApplyResponse(BaseSchema):
    applied: list[CodeFixSchema] = []
    skipped: list[CodeFixSchema] = []
    warnings: list[WarningSchema] = []
    changes_recorded: int = 0


class FixPlanRequest(BaseSchema):
    """Plan site-global fixes from the latest scan."""

    repo_id: str = Field(min_length=1, max_length=255)
    domain: str = Field(min_length=4, description="Site origin, e.g. https://example.com")
    site_name: str | None = None


class FixPlanResponse(BaseSchema):
    repo_id: str
    commit_hash: str
    fixes: list[CodeFixSchema] = []
