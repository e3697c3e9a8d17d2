"""Canonical domain models (single source of truth).

Used across:
- snapshot conversion (K8s pods -> `WorkloadSnapshot`)
- the classify -> aggregate -> score pipeline
- the context switcher and the HTTP/CLI surfaces

Records produced by the pipeline are frozen; a poll cycle rebuilds everything from scratch.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class BaseModelFrozen(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ContainerWaiting(BaseModelFrozen):
    reason: str = ""
    message: str = ""


class ContainerStatusSnapshot(BaseModelFrozen):
    name: str
    restart_count: int = 0
    waiting: Optional[ContainerWaiting] = None


class WorkloadSnapshot(BaseModelFrozen):
    """One running pod as seen by the snapshot provider (read-only)."""

    namespace: str
    name: str
    phase: Optional[str] = None
    container_statuses: List[ContainerStatusSnapshot] = Field(default_factory=list)


class ErrorKind(str, Enum):
    INSTANCE_FAILED = "InstanceFailed"
    HIGH_RESTART_COUNT = "HighRestartCount"
    CRASH_LOOP = "CrashLoop"
    IMAGE_PULL_FAILURE = "ImagePullFailure"
    OTHER_CONTAINER_ERROR = "OtherContainerError"


class ErrorRecord(BaseModelFrozen):
    namespace: str
    instance_name: str
    container_name: Optional[str] = None
    kind: ErrorKind
    # Raw waiting reason (e.g. ErrImagePull) when the record came from a waiting state.
    reason: Optional[str] = None
    message: str = ""
    restart_count: int = 0


class NamespaceStats(BaseModelStrict):
    name: str
    total_errors: int = 0
    unique_instances: int = 0
    crash_loop_count: int = 0
    image_pull_count: int = 0
    high_restart_count: int = 0
    total_restarts: int = 0
    score: float = 0.0

    @property
    def other_error_count(self) -> int:
        # Derived, never stored.
        return self.total_errors - (self.crash_loop_count + self.image_pull_count + self.high_restart_count)


class ScoringWeights(BaseModelFrozen):
    crash_loop: float
    image_pull: float
    high_restarts: float
    other_errors: float
    restart_multiplier: float

    @field_validator("*")
    @classmethod
    def _finite_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("weights must be finite and positive")
        return v

    @classmethod
    def reference(cls) -> "ScoringWeights":
        """The weights shipped in the sample config.yaml. Never applied implicitly."""
        return cls(crash_loop=3.0, image_pull=2.0, high_restarts=2.0, other_errors=1.0, restart_multiplier=0.1)


class ContextProfile(BaseModelFrozen):
    name: str
    cluster_ref: Optional[str] = None
    # Endpoint of the referenced cluster entry; None when the entry is missing or has no server.
    server: Optional[str] = None
    user: Optional[str] = None
    namespace: Optional[str] = None


class ContextSet(BaseModelFrozen):
    current_context: str
    contexts: Dict[str, ContextProfile] = Field(default_factory=dict)

    def names(self) -> List[str]:
        return sorted(self.contexts)

    def with_current(self, name: str) -> "ContextSet":
        return self.model_copy(update={"current_context": name})


class ContextListing(BaseModelStrict):
    current_context: str
    contexts: List[str] = Field(default_factory=list)

    @classmethod
    def from_context_set(cls, cs: ContextSet) -> "ContextListing":
        return cls(current_context=cs.current_context, contexts=cs.names())


class CycleResult(BaseModelStrict):
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    context_name: Optional[str] = None
    namespaces: List[NamespaceStats] = Field(default_factory=list)
    errors: List[ErrorRecord] = Field(default_factory=list)
