"""Resumable, fail-fast execution of the installation steps.

The pipeline walks the step catalog in order. For each step it decides
whether to skip it (already completed on disk, or declined by the
operator), executes it otherwise and records the outcome. The first step
that fails halts the run; the records collected so far are returned as a
Summary.
"""

import shutil
from collections.abc import Callable, Sequence
from pathlib import Path

from icecream import ic

from sts_installer import console, prompts
from sts_installer.artifacts import (
    DEFAULT_ARTIFACTS_ROOT,
    ArtifactStore,
    file_exists,
    write_install_metadata,
)
from sts_installer.detector import CompletionDetector
from sts_installer.exceptions import InstallerError, PreconditionError, StepConstructionError
from sts_installer.executor import CommandExecutor
from sts_installer.models import (
    Configuration,
    InstallMetadata,
    SkipReason,
    StepEvent,
    StepRecord,
    StepStatus,
    Summary,
)
from sts_installer.steps import STEP_CATALOG, Step
from sts_installer.steps.catalog import EXTRACT_CREDENTIALS_REQUESTS, SET_CREDENTIALS_MODE

EventSink = Callable[[StepEvent, int, str, str | None], None]
ConfirmCallback = Callable[[int, str], bool]


class StepPipeline:
    """Runs the step catalog against one configuration.

    Attributes:
        config: The installer configuration.
        executor: Executor handed to every step.
        artifacts_root: Root of the artifacts tree.
        on_event: Receives every lifecycle event.
        confirm: Asked before each step when per-step confirmation is enabled.

    """

    def __init__(
        self,
        config: Configuration,
        executor: CommandExecutor,
        *,
        artifacts_root: Path = DEFAULT_ARTIFACTS_ROOT,
        on_event: EventSink = console.report_step_event,
        confirm: ConfirmCallback = prompts.confirm_step,
    ) -> None:
        self.config = config
        self.executor = executor
        self.artifacts_root = Path(artifacts_root)
        self.on_event = on_event
        self.confirm = confirm

    def preflight(self, *, allow_existing: bool = False) -> ArtifactStore:
        """Refuse to start over an existing cluster directory.

        An existing directory usually means the cluster was already
        installed. Resuming is allowed when a resume point is configured
        or the caller explicitly asks for it.

        Args:
            allow_existing: Accept an existing cluster directory.

        Returns:
            The artifact store for the configured release and cluster.

        Raises:
            ConfigurationError: If the release image cannot be parsed.
            PreconditionError: If the cluster directory already exists.

        """
        store = ArtifactStore.for_release(self.config.release_image, self.config.cluster_name, root=self.artifacts_root)
        if allow_existing or self.config.start_from_step > 0:
            return store
        if store.cluster_dir.exists():
            raise PreconditionError(
                f"Cluster directory '{store.cluster_dir}' already exists; the cluster is likely already installed. "
                "Use a different --cluster-name, remove the directory, or resume with --resume / --start-from-step"
            )
        return store

    def _emit(self, event: StepEvent, number: int, name: str, detail: str | None = None) -> None:
        self.on_event(event, number, name, detail)

    def run(self, catalog: Sequence[type[Step]] = STEP_CATALOG) -> Summary:
        """Execute the catalog in order.

        Args:
            catalog: Step classes in execution order.

        Returns:
            Records for every evaluated step, up to and including the
            first execution failure.

        """
        summary = Summary()

        for step_cls in catalog:
            try:
                step = step_cls(self.config, self.executor, artifacts_root=self.artifacts_root)
            except StepConstructionError as exc:
                self._emit(StepEvent.FAILED, step_cls.number, step_cls.name, str(exc))
                summary.add(StepRecord(step_cls.number, step_cls.name, StepStatus.FAILED, error=str(exc)))
                continue

            if CompletionDetector(self.config, step.store).should_skip(step.number):
                self._emit(StepEvent.SKIPPED, step.number, step.name)
                summary.add(
                    StepRecord(step.number, step.name, StepStatus.SKIPPED, skip_reason=SkipReason.ALREADY_COMPLETED)
                )
                self._after_step(step, executed=False)
                continue

            if self.config.confirm_each_step and not self.confirm(step.number, step.name):
                self._emit(StepEvent.DECLINED, step.number, step.name)
                summary.add(
                    StepRecord(step.number, step.name, StepStatus.SKIPPED, skip_reason=SkipReason.OPERATOR_DECLINED)
                )
                continue

            self._emit(StepEvent.STARTED, step.number, step.name)
            try:
                step.execute()
            except (InstallerError, OSError) as exc:
                ic(exc)
                self._emit(StepEvent.FAILED, step.number, step.name, str(exc))
                summary.add(StepRecord(step.number, step.name, StepStatus.FAILED, error=str(exc)))
                break

            self._emit(StepEvent.COMPLETED, step.number, step.name)
            summary.add(StepRecord(step.number, step.name, StepStatus.SUCCEEDED))
            self._after_step(step, executed=True)

        return summary

    def _after_step(self, step: Step, *, executed: bool) -> None:
        """Persist facts later steps and the cleanup workflow rely on."""
        if step.number == EXTRACT_CREDENTIALS_REQUESTS:
            self._record_install_metadata(step.store)
        elif step.number == SET_CREDENTIALS_MODE and executed:
            self._backup_install_config(step.store)

    def _record_install_metadata(self, store: ArtifactStore) -> None:
        if file_exists(store.install_metadata_path):
            return
        try:
            path = write_install_metadata(store, InstallMetadata(release_image=self.config.release_image))
        except InstallerError as exc:
            ic(exc)
            console.warning(f"Could not record install metadata: {exc}")
            return
        ic(path)

    @staticmethod
    def _backup_install_config(store: ArtifactStore) -> None:
        # openshift-install consumes install-config.yaml when creating manifests
        try:
            shutil.copy2(store.install_config, store.install_config_backup)
        except OSError as exc:
            ic(exc)
            console.warning(f"Could not back up {store.install_config}: {exc}")
            return
        console.step(f"Saved a copy to {console.highlight(str(store.install_config_backup))}")
