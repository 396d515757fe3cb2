"""Installation steps and their fixed catalog."""

from sts_installer.steps.base import Step
from sts_installer.steps.catalog import STEP_CATALOG

__all__ = ["STEP_CATALOG", "Step"]
