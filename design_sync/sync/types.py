"""Request and result types for sync and undo."""

from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from design_sync.diff.models import DiffSummary


class SyncDirection(StrEnum):
    CODE_TO_DESIGN = "code_to_design"
    DESIGN_TO_CODE = "design_to_code"
    BIDIRECTIONAL = "bidirectional"


OperationStatus = Literal["pending", "running", "completed", "partial", "failed"]


class SyncComponentInput(BaseModel):
    component_id: str = Field(min_length=1)
    direction: SyncDirection
    exclude_variants: list[str] = Field(default_factory=list)


class ExecuteSyncInput(BaseModel):
    """One sync batch request.

    At least one component is required and each component may appear once,
    since an operation stores a single direction per component.
    """

    components: list[SyncComponentInput] = Field(min_length=1)
    dry_run: bool = False
    initiated_by: str | None = None

    @model_validator(mode="after")
    def _reject_repeated_components(self) -> "ExecuteSyncInput":
        seen: set[str] = set()
        repeated: set[str] = set()
        for component in self.components:
            if component.component_id in seen:
                repeated.add(component.component_id)
            seen.add(component.component_id)
        if repeated:
            raise ValueError(f"component_id listed more than once: {', '.join(sorted(repeated))}")
        return self


class SyncOperationResult(BaseModel):
    operation_id: str
    status: OperationStatus
    components: list[str]
    diff_summary: DiffSummary
    reversible_until: datetime
    duration_ms: int = 0


class UndoRequest(BaseModel):
    operation_id: str = Field(min_length=1)


class UndoResult(BaseModel):
    undone_operation_id: str
    restored_components: list[str] = Field(default_factory=list)
    duration_ms: int = 0
    status: Literal["success", "failed", "expired"]
