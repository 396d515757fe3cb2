"""Command-line interface for openshift-sts-installer.

This module provides the CLI entry point: the ``install`` command that
runs the step pipeline, the ``cleanup`` command that removes the AWS
resources of an installation and the ``steps`` command that lists the
step catalog.
"""

import os
import sys
from pathlib import Path
from typing import Any

import click
from click.core import ParameterSource
from icecream import ic

from sts_installer import __version__, console, prompts
from sts_installer.artifacts import DEFAULT_ARTIFACTS_ROOT
from sts_installer.cleanup import CleanupPlan, plan_from_artifacts, plan_from_flags, run_cleanup
from sts_installer.config import CONFIG_FILE_NAME, load_configuration, settings_from_env, settings_from_file
from sts_installer.credentials import credential_env, validate_credentials
from sts_installer.exceptions import (
    BinaryNotFoundError,
    CommandError,
    ConfigurationError,
    CredentialsError,
    MetadataError,
    PreconditionError,
)
from sts_installer.executor import CommandExecutor
from sts_installer.models import DEFAULT_AWS_PROFILE, Configuration
from sts_installer.pipeline import StepPipeline
from sts_installer.prerequisites import check_platform, check_required_binaries, validate_pull_secret
from sts_installer.steps import STEP_CATALOG

# CLI parameter name -> Configuration field
_INSTALL_FLAGS = {
    "release_image": "release_image",
    "cluster_name": "cluster_name",
    "region": "aws_region",
    "base_domain": "base_domain",
    "ssh_key": "ssh_key_path",
    "aws_profile": "aws_profile",
    "pull_secret": "pull_secret_path",
    "private_bucket": "private_bucket",
    "start_from_step": "start_from_step",
    "confirm_each_step": "confirm_each_step",
    "instance_type": "instance_type",
}


def _given_flags(ctx: click.Context, mapping: dict[str, str]) -> dict[str, Any]:
    """Return only the options the operator actually passed on the command line."""
    return {
        field_name: ctx.params[param]
        for param, field_name in mapping.items()
        if ctx.get_parameter_source(param) is ParameterSource.COMMANDLINE
    }


def _show_configuration(config: Configuration) -> None:
    console.summary_panel(
        "Installation",
        {
            "Cluster": config.cluster_name,
            "Release": config.release_image,
            "Region": config.aws_region or "(from install-config)",
            "AWS profile": config.aws_profile,
            "Instance type": config.instance_type,
            "Private bucket": "yes" if config.private_bucket else "no",
        },
    )


@click.group(help="Install OpenShift on AWS with short-lived STS credentials", invoke_without_command=True)
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool) -> None:
    """Process global options.

    Args:
        ctx: The click context.
        version: Print version and exit.
        debug: Enable debug output.

    """
    if debug:
        ic.enable()
    else:
        ic.disable()

    if version:
        click.echo(__version__)
        ctx.exit()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(help="Run the installation steps")
@click.option("--release-image", help="OpenShift release image (e.g. quay.io/openshift-release-dev/ocp-release:4.12.0-x86_64)")
@click.option("--cluster-name", help="cluster name")
@click.option("--region", help="AWS region")
@click.option("--base-domain", help="base DNS domain")
@click.option("--ssh-key", help="path to the public SSH key")
@click.option("--aws-profile", help=f"AWS profile name (default: {DEFAULT_AWS_PROFILE})")
@click.option("--pull-secret", help="path to the pull secret file")
@click.option("--private-bucket", is_flag=True, help="use a private S3 bucket with CloudFront")
@click.option("--start-from-step", type=int, default=0, help="start from a specific step number")
@click.option("--confirm-each-step", is_flag=True, help="prompt for confirmation before each step")
@click.option("--instance-type", help="AWS instance type for control plane and compute pools")
@click.option("--resume", is_flag=True, help="continue an installation in an existing cluster directory")
@click.option("--config", "config_file", type=click.Path(path_type=Path), help=f"config file (default: {CONFIG_FILE_NAME})")
@click.option(
    "--artifacts-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_ARTIFACTS_ROOT,
    show_default=True,
    help="root directory for artifacts",
)
@click.option("--skip-aws-check", is_flag=True, help="do not validate AWS credentials before starting")
@click.pass_context
def install(
    ctx: click.Context,
    resume: bool,
    config_file: Path | None,
    artifacts_dir: Path,
    skip_aws_check: bool,
    **_: Any,
) -> None:
    """Load the configuration, check prerequisites and run the pipeline.

    Args:
        ctx: The click context; configuration options are read from it.
        resume: Accept an existing cluster directory.
        config_file: Explicit config file.
        artifacts_dir: Root directory for artifacts.
        skip_aws_check: Skip the STS identity check.

    """
    try:
        check_platform()
        check_required_binaries()
        config = load_configuration(_given_flags(ctx, _INSTALL_FLAGS), config_file=config_file, environ=os.environ)
        ic(config)

        if not skip_aws_check:
            console.action(f"Validating AWS credentials for profile {console.highlight(config.aws_profile)}")
            arn = validate_credentials(config.aws_profile)
            console.success(f"AWS credentials are valid ({arn})")

        validate_pull_secret(Path(config.pull_secret_path).expanduser())

        pipeline = StepPipeline(config, CommandExecutor(), artifacts_root=artifacts_dir)
        pipeline.preflight(allow_existing=resume)
    except (ConfigurationError, PreconditionError, CredentialsError, BinaryNotFoundError) as e:
        raise click.ClickException(str(e)) from None

    _show_configuration(config)
    summary = pipeline.run()

    console.newline()
    console.print_summary(summary)
    if summary.has_failures:
        sys.exit(1)


def _cleanup_plan(
    from_artifacts: Path | None,
    cluster_name: str | None,
    region: str | None,
    release_image: str | None,
    artifacts_dir: Path,
) -> CleanupPlan:
    if from_artifacts is not None:
        return plan_from_artifacts(from_artifacts, artifacts_root=artifacts_dir)
    if cluster_name and region:
        return plan_from_flags(cluster_name, region, artifacts_root=artifacts_dir, release_image=release_image)
    if cluster_name:
        return plan_from_artifacts(artifacts_dir / "clusters" / cluster_name, artifacts_root=artifacts_dir)
    raise click.UsageError("Either --from-artifacts or --cluster-name (optionally with --region) is required")


@cli.command(help="Remove the AWS resources of an installation")
@click.option("--cluster-name", help="cluster name")
@click.option("--region", help="AWS region (read from metadata.json when omitted)")
@click.option("--release-image", help="release image used for the installation")
@click.option(
    "--from-artifacts",
    type=click.Path(file_okay=False, path_type=Path),
    help="cluster directory to read metadata from (e.g. artifacts/clusters/my-cluster)",
)
@click.option("--aws-profile", help=f"AWS profile name (default: {DEFAULT_AWS_PROFILE})")
@click.option("--config", "config_file", type=click.Path(path_type=Path), help=f"config file (default: {CONFIG_FILE_NAME})")
@click.option(
    "--artifacts-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_ARTIFACTS_ROOT,
    show_default=True,
    help="root directory for artifacts",
)
@click.option("--yes", "-y", is_flag=True, help="do not ask for confirmation")
def cleanup(
    cluster_name: str | None,
    region: str | None,
    release_image: str | None,
    from_artifacts: Path | None,
    aws_profile: str | None,
    config_file: Path | None,
    artifacts_dir: Path,
    yes: bool,
) -> None:
    """Destroy the cluster infrastructure and delete its STS resources."""
    try:
        plan = _cleanup_plan(from_artifacts, cluster_name, region, release_image, artifacts_dir)
    except MetadataError as e:
        raise click.ClickException(
            f"{e}\nProvide the values explicitly, e.g. cleanup --cluster-name=my-cluster --region=us-east-2"
        ) from None

    console.info(f"Cluster name: {console.highlight(plan.cluster_name)}")
    console.info(f"AWS region: {console.highlight(plan.region)}")

    try:
        settings = settings_from_env(os.environ)
        settings.update(settings_from_file(config_file or Path(CONFIG_FILE_NAME), required=config_file is not None))
        profile = aws_profile or settings.get("aws_profile") or DEFAULT_AWS_PROFILE

        console.action(f"Validating AWS credentials for profile {console.highlight(profile)}")
        validate_credentials(profile)
    except (ConfigurationError, CredentialsError) as e:
        raise click.ClickException(str(e)) from None
    console.success("AWS credentials are valid")

    if not yes and not prompts.confirm_cleanup(plan.cluster_name, plan.region):
        console.info("Cleanup cancelled.")
        return

    try:
        run_cleanup(plan, CommandExecutor(), env=credential_env(profile))
    except (CommandError, BinaryNotFoundError) as e:
        console.error(f"Failed to clean up IAM/S3: {e}")
        console.info("You may need to manually delete AWS resources.")
        sys.exit(1)

    console.success(f"Cleanup of {console.highlight(plan.cluster_name)} completed")


@cli.command(name="steps", help="List the installation steps")
def list_steps() -> None:
    """Print the step catalog."""
    console.print_catalog([(step.number, step.name) for step in STEP_CATALOG])


if __name__ == "__main__":
    cli()
