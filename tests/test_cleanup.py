"""Tests for cleanup.py module."""

import json

import pytest

from sts_installer.cleanup import (
    CleanupPlan,
    destroy_infrastructure,
    plan_from_artifacts,
    plan_from_flags,
    run_cleanup,
)
from sts_installer.exceptions import CommandError, MetadataError

RELEASE_IMAGE = "quay.io/openshift-release-dev/ocp-release:4.12.0-x86_64"


@pytest.fixture
def installed_cluster(store, populate):
    """Cluster directory as left behind by a completed installation."""
    populate(
        store.cluster_metadata_path,
        json.dumps({"clusterName": "test-cluster", "infraID": "test-cluster-x7k2p", "aws": {"region": "us-east-2"}}),
    )
    populate(store.install_metadata_path, json.dumps({"releaseImage": RELEASE_IMAGE}))
    populate(store.installer_state, "{}")
    populate(store.binary_path("openshift-install"))
    populate(store.binary_path("ccoctl"))
    return store


class TestPlans:
    """Tests for building cleanup plans."""

    def test_from_artifacts(self, installed_cluster, artifacts_root):
        """Test everything is read back from the cluster directory."""
        plan = plan_from_artifacts(installed_cluster.cluster_dir, artifacts_root=artifacts_root)

        assert plan.cluster_name == "test-cluster"
        assert plan.region == "us-east-2"
        assert plan.installer == installed_cluster.binary_path("openshift-install")
        assert plan.ccoctl == str(installed_cluster.binary_path("ccoctl"))
        assert plan.installer_state == installed_cluster.installer_state

    def test_from_artifacts_without_release(self, store, populate, artifacts_root):
        """Test ccoctl falls back to PATH when the release is unknown."""
        populate(store.cluster_metadata_path, json.dumps({"clusterName": "test-cluster", "aws": {"region": "us-east-2"}}))

        plan = plan_from_artifacts(store.cluster_dir, artifacts_root=artifacts_root)

        assert plan.installer is None
        assert plan.ccoctl == "ccoctl"

    def test_from_artifacts_without_region(self, store, populate, artifacts_root):
        """Test metadata without a region raises MetadataError."""
        populate(store.cluster_metadata_path, json.dumps({"clusterName": "test-cluster"}))

        with pytest.raises(MetadataError, match="cluster name and region"):
            plan_from_artifacts(store.cluster_dir, artifacts_root=artifacts_root)

    def test_from_artifacts_missing_metadata(self, store, artifacts_root):
        """Test a directory without metadata.json raises MetadataError."""
        with pytest.raises(MetadataError, match="not found"):
            plan_from_artifacts(store.cluster_dir, artifacts_root=artifacts_root)

    def test_from_flags(self, installed_cluster, artifacts_root):
        """Test explicit values with a release image locate the binaries."""
        plan = plan_from_flags("test-cluster", "eu-west-1", artifacts_root=artifacts_root, release_image=RELEASE_IMAGE)

        assert plan.region == "eu-west-1"
        assert plan.cluster_dir == installed_cluster.cluster_dir
        assert plan.installer == installed_cluster.binary_path("openshift-install")

    def test_from_flags_unknown_cluster(self, artifacts_root):
        """Test a cluster without a directory only gets the ccoctl phase."""
        plan = plan_from_flags("other", "eu-west-1", artifacts_root=artifacts_root)

        assert plan.cluster_dir is None
        assert plan.installer_state is None
        assert plan.ccoctl == "ccoctl"


class TestRunCleanup:
    """Tests for executing cleanup plans."""

    def test_both_phases(self, installed_cluster, artifacts_root, mock_executor):
        """Test destroy runs before ccoctl aws delete."""
        plan = plan_from_artifacts(installed_cluster.cluster_dir, artifacts_root=artifacts_root)

        run_cleanup(plan, mock_executor, env={"AWS_ACCESS_KEY_ID": "AKIA"})

        destroy_cmd = mock_executor.run_interactive.call_args[0][0]
        assert destroy_cmd[1:4] == ["destroy", "cluster", "--dir"]
        assert mock_executor.run_interactive.call_args.kwargs["env"] == {"AWS_ACCESS_KEY_ID": "AKIA"}
        delete_cmd = mock_executor.run.call_args[0][0]
        assert delete_cmd[1:] == ["aws", "delete", "--name", "test-cluster", "--region", "us-east-2"]

    def test_destroy_failure_is_not_fatal(self, installed_cluster, artifacts_root, mock_executor):
        """Test ccoctl still runs when destroy fails."""
        mock_executor.run_interactive.side_effect = CommandError(["openshift-install"], 1)
        plan = plan_from_artifacts(installed_cluster.cluster_dir, artifacts_root=artifacts_root)

        run_cleanup(plan, mock_executor)

        mock_executor.run.assert_called_once()

    def test_ccoctl_failure_is_fatal(self, artifacts_root, mock_executor):
        """Test a failing ccoctl delete propagates."""
        mock_executor.run.side_effect = CommandError(["ccoctl"], 1, "AccessDenied")

        with pytest.raises(CommandError, match="AccessDenied"):
            run_cleanup(CleanupPlan(cluster_name="c1", region="us-east-2"), mock_executor)

    def test_destroy_skipped_without_state(self, store, mock_executor):
        """Test destroy is skipped when the installer state is gone."""
        plan = CleanupPlan(cluster_name="c1", region="us-east-2", cluster_dir=store.cluster_dir)

        assert destroy_infrastructure(plan, mock_executor, None) is False
        mock_executor.run_interactive.assert_not_called()
