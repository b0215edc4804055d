"""Uniform step results for the provisioning pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from provisioner.config.settings import ProvisioningConfig


class StepOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED_NON_FATAL = "failed-non-fatal"


@dataclass(frozen=True)
class StepResult:
    """What a step did.

    ``config`` is set only by steps that produce a new configuration value;
    the orchestrator carries it forward to every later step.
    """

    name: str
    outcome: StepOutcome
    detail: str = ""
    config: Optional[ProvisioningConfig] = None

    @classmethod
    def succeeded(cls, name: str, detail: str = "", config: Optional[ProvisioningConfig] = None) -> "StepResult":
        return cls(name, StepOutcome.SUCCEEDED, detail, config)

    @classmethod
    def skipped(cls, name: str, detail: str = "") -> "StepResult":
        return cls(name, StepOutcome.SKIPPED, detail)

    @classmethod
    def failed(cls, name: str, detail: str = "") -> "StepResult":
        return cls(name, StepOutcome.FAILED_NON_FATAL, detail)
