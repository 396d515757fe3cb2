"""Tests for cli.py module."""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from sts_installer import __version__
from sts_installer.cli import cli
from sts_installer.exceptions import CommandError, CredentialsError, PreconditionError
from sts_installer.models import StepRecord, StepStatus, Summary

RELEASE = "quay.io/openshift-release-dev/ocp-release:4.12.0-x86_64"


@pytest.fixture
def runner(tmp_path, monkeypatch):
    """CliRunner working in an empty directory with a clean environment."""
    monkeypatch.chdir(tmp_path)
    for name in ("RELEASE_IMAGE", "AWS_REGION", "AWS_PROFILE", "CONFIRM_EACH_STEP"):
        monkeypatch.delenv(f"OPENSHIFT_STS_{name}", raising=False)
    return CliRunner()


@pytest.fixture
def host_checks():
    """Skip host prerequisite and credential checks."""
    with (
        patch("sts_installer.cli.check_platform"),
        patch("sts_installer.cli.check_required_binaries"),
        patch("sts_installer.cli.validate_credentials", return_value="arn:aws:iam::123:user/dev") as validate,
        patch("sts_installer.cli.validate_pull_secret"),
    ):
        yield validate


@pytest.fixture
def mock_pipeline():
    """Replace the pipeline with a double returning a successful summary."""
    with patch("sts_installer.cli.StepPipeline") as mock:
        instance = MagicMock()
        instance.run.return_value = Summary([StepRecord(1, "Extract credentials requests", StepStatus.SUCCEEDED)])
        mock.return_value = instance
        yield mock


class TestCliVersion:
    """Tests for version option."""

    def test_version_flag(self, runner):
        """Test --version flag prints version."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_version_short_flag(self, runner):
        """Test -v flag prints version."""
        result = runner.invoke(cli, ["-v"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestCliHelp:
    """Tests for help output."""

    def test_help_flag(self, runner):
        """Test --help lists the commands."""
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "install" in result.output
        assert "cleanup" in result.output
        assert "steps" in result.output

    def test_install_help(self, runner):
        """Test install --help lists its options."""
        result = runner.invoke(cli, ["install", "--help"])

        assert result.exit_code == 0
        for option in ("--release-image", "--cluster-name", "--start-from-step", "--confirm-each-step", "--resume"):
            assert option in result.output


class TestCliSteps:
    """Tests for the steps command."""

    def test_lists_catalog(self, runner):
        """Test the step catalog is printed."""
        result = runner.invoke(cli, ["steps"])

        assert result.exit_code == 0
        assert "Extract credentials requests" in result.output
        assert "Verify installation" in result.output


class TestCliInstall:
    """Tests for the install command."""

    def test_runs_pipeline(self, runner, host_checks, mock_pipeline):
        """Test a valid configuration runs the pipeline."""
        result = runner.invoke(
            cli,
            ["install", "--release-image", RELEASE, "--cluster-name", "my-cluster", "--region", "us-east-2"],
        )

        assert result.exit_code == 0, result.output
        config = mock_pipeline.call_args[0][0]
        assert config.cluster_name == "my-cluster"
        assert config.aws_region == "us-east-2"
        assert config.private_bucket is False
        mock_pipeline.return_value.preflight.assert_called_once_with(allow_existing=False)
        mock_pipeline.return_value.run.assert_called_once_with()
        host_checks.assert_called_once_with("default")

    def test_flags_override_environment(self, runner, host_checks, mock_pipeline, monkeypatch):
        """Test only flags given on the command line override the environment."""
        monkeypatch.setenv("OPENSHIFT_STS_RELEASE_IMAGE", RELEASE)
        monkeypatch.setenv("OPENSHIFT_STS_CONFIRM_EACH_STEP", "true")

        result = runner.invoke(cli, ["install", "--cluster-name", "my-cluster", "--private-bucket"])

        assert result.exit_code == 0, result.output
        config = mock_pipeline.call_args[0][0]
        assert config.release_image == RELEASE
        assert config.confirm_each_step is True
        assert config.private_bucket is True

    def test_failed_summary_exits_non_zero(self, runner, host_checks, mock_pipeline):
        """Test a summary with failures gives exit status 1."""
        mock_pipeline.return_value.run.return_value = Summary(
            [StepRecord(7, "Create AWS resources", StepStatus.FAILED, error="AccessDenied")]
        )

        result = runner.invoke(cli, ["install", "--release-image", RELEASE, "--cluster-name", "my-cluster"])

        assert result.exit_code == 1

    def test_missing_release_image(self, runner, host_checks, mock_pipeline):
        """Test a configuration error is reported without running anything."""
        result = runner.invoke(cli, ["install", "--cluster-name", "my-cluster"])

        assert result.exit_code == 1
        assert "Release image is required" in result.output
        mock_pipeline.assert_not_called()

    def test_existing_cluster_directory(self, runner, host_checks, mock_pipeline):
        """Test a refused preflight exits with an error."""
        mock_pipeline.return_value.preflight.side_effect = PreconditionError("Cluster directory exists")

        result = runner.invoke(cli, ["install", "--release-image", RELEASE, "--cluster-name", "my-cluster"])

        assert result.exit_code == 1
        assert "Cluster directory exists" in result.output
        mock_pipeline.return_value.run.assert_not_called()

    def test_resume(self, runner, host_checks, mock_pipeline):
        """Test --resume accepts an existing cluster directory."""
        result = runner.invoke(
            cli, ["install", "--release-image", RELEASE, "--cluster-name", "my-cluster", "--resume"]
        )

        assert result.exit_code == 0, result.output
        mock_pipeline.return_value.preflight.assert_called_once_with(allow_existing=True)

    def test_invalid_credentials(self, runner, host_checks, mock_pipeline):
        """Test rejected AWS credentials stop the installation."""
        host_checks.side_effect = CredentialsError("AWS credentials for profile 'default' are not valid")

        result = runner.invoke(cli, ["install", "--release-image", RELEASE, "--cluster-name", "my-cluster"])

        assert result.exit_code == 1
        assert "not valid" in result.output
        mock_pipeline.assert_not_called()

    def test_skip_aws_check(self, runner, host_checks, mock_pipeline):
        """Test --skip-aws-check does not call STS."""
        result = runner.invoke(
            cli, ["install", "--release-image", RELEASE, "--cluster-name", "my-cluster", "--skip-aws-check"]
        )

        assert result.exit_code == 0, result.output
        host_checks.assert_not_called()


class TestCliCleanup:
    """Tests for the cleanup command."""

    @pytest.fixture
    def cleanup_mocks(self):
        with (
            patch("sts_installer.cli.validate_credentials") as validate,
            patch("sts_installer.cli.credential_env", return_value=None),
            patch("sts_installer.cli.run_cleanup") as run_cleanup,
        ):
            yield {"validate": validate, "run_cleanup": run_cleanup}

    def test_requires_cluster(self, runner, cleanup_mocks):
        """Test cleanup without a cluster is a usage error."""
        result = runner.invoke(cli, ["cleanup"])

        assert result.exit_code == 2
        cleanup_mocks["run_cleanup"].assert_not_called()

    def test_explicit_values(self, runner, cleanup_mocks):
        """Test --cluster-name with --region runs cleanup."""
        result = runner.invoke(cli, ["cleanup", "--cluster-name", "c1", "--region", "us-east-2", "--yes"])

        assert result.exit_code == 0, result.output
        plan = cleanup_mocks["run_cleanup"].call_args[0][0]
        assert plan.cluster_name == "c1"
        assert plan.region == "us-east-2"
        cleanup_mocks["validate"].assert_called_once_with("default")

    def test_missing_metadata(self, runner, cleanup_mocks):
        """Test a cluster without metadata.json asks for explicit values."""
        result = runner.invoke(cli, ["cleanup", "--cluster-name", "c1", "--yes"])

        assert result.exit_code == 1
        assert "--region" in result.output
        cleanup_mocks["run_cleanup"].assert_not_called()

    def test_declined(self, runner, cleanup_mocks):
        """Test declining the confirmation removes nothing."""
        with patch("sts_installer.cli.prompts.confirm_cleanup", return_value=False) as confirm:
            result = runner.invoke(cli, ["cleanup", "--cluster-name", "c1", "--region", "us-east-2"])

        assert result.exit_code == 0
        confirm.assert_called_once_with("c1", "us-east-2")
        cleanup_mocks["run_cleanup"].assert_not_called()

    def test_ccoctl_failure(self, runner, cleanup_mocks):
        """Test a failing ccoctl delete exits non-zero."""
        cleanup_mocks["run_cleanup"].side_effect = CommandError(["ccoctl"], 1, "AccessDenied")

        result = runner.invoke(cli, ["cleanup", "--cluster-name", "c1", "--region", "us-east-2", "--yes"])

        assert result.exit_code == 1
