"""Completion detection for pipeline steps.

There is no execution ledger: whether a step already ran is inferred from
the artifacts it leaves on disk. Each step number maps to one predicate
over the artifact store; deploy and verify leave no reliable trace and are
only ever skipped through an explicit resume point.
"""

from collections.abc import Callable

from icecream import ic

from sts_installer.artifacts import CCOCTL, OPENSHIFT_INSTALL, ArtifactStore, dir_has_files, file_contains, file_exists
from sts_installer.models import Configuration

CREDENTIALS_MODE_MARKER = "credentialsMode: Manual"

# Steps that are never skipped by detection
NEVER_AUTO_SKIP = frozenset({10, 11})


class CompletionDetector:
    """Decides whether a step's expected output already exists.

    Attributes:
        config: The installer configuration.
        store: Artifact store for the configured release and cluster.

    """

    def __init__(self, config: Configuration, store: ArtifactStore) -> None:
        self.config = config
        self.store = store
        self._predicates: dict[int, Callable[[], bool]] = {
            1: lambda: dir_has_files(store.credreqs_dir),
            2: lambda: file_exists(store.binary_path(OPENSHIFT_INSTALL)),
            3: lambda: file_exists(store.binary_path(CCOCTL)),
            # openshift-install consumes install-config.yaml; the backup outlives it
            4: lambda: file_exists(store.install_config) or file_exists(store.install_config_backup),
            5: lambda: any(
                file_contains(path, CREDENTIALS_MODE_MARKER) for path in (store.install_config, store.install_config_backup)
            ),
            6: lambda: dir_has_files(store.manifests_dir),
            7: lambda: dir_has_files(store.staging_manifests_dir) and dir_has_files(store.staging_tls_dir),
            # Staging consumed: nothing left to copy and the destination is populated
            8: lambda: not dir_has_files(store.staging_manifests_dir) and dir_has_files(store.manifests_dir),
            9: lambda: not dir_has_files(store.staging_tls_dir) and dir_has_files(store.tls_dir),
        }

    def should_skip(self, step_number: int) -> bool:
        """Return True if the step should not be executed.

        An explicit resume point always wins; otherwise the step's
        on-disk marker is inspected.

        Args:
            step_number: Position of the step in the catalog.

        Returns:
            True when the step is below the resume point or already completed.

        """
        if 0 < self.config.start_from_step and step_number < self.config.start_from_step:
            return True

        if step_number in NEVER_AUTO_SKIP:
            return False

        predicate = self._predicates.get(step_number)
        if predicate is None:
            return False

        try:
            completed = predicate()
        except OSError as exc:
            ic(exc)
            return False

        ic(step_number, completed)
        return completed
