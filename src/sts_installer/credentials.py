"""AWS credential resolution.

ccoctl and openshift-install read AWS credentials from the environment.
This module turns a named AWS profile into the matching environment
variables. Resolution is best-effort: when the profile cannot be read the
caller gets an explicit "unavailable" result and proceeds with whatever
credentials the tools find on their own.
"""

from dataclasses import dataclass, field

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from icecream import ic

from sts_installer.exceptions import CredentialsError


@dataclass(frozen=True, slots=True)
class ProfileCredentials:
    """Result of resolving an AWS profile.

    Attributes:
        profile: The profile that was looked up.
        env: Environment variables carrying the credentials (empty when unavailable).
        reason: Why the credentials are unavailable, if they are.

    """

    profile: str
    env: dict[str, str] = field(default_factory=dict)
    reason: str = ""

    @property
    def available(self) -> bool:
        return bool(self.env)


def resolve_profile_env(profile: str) -> ProfileCredentials:
    """Resolve an AWS profile into credential environment variables.

    Never raises; failures are reported through the returned value.

    Args:
        profile: Name of the AWS profile.

    Returns:
        ProfileCredentials, available or not.

    """
    try:
        session = boto3.Session(profile_name=profile)
        credentials = session.get_credentials()
        if credentials is None:
            return ProfileCredentials(profile=profile, reason=f"no credentials configured for profile '{profile}'")
        # SSO and assume-role providers fetch lazily, here
        frozen = credentials.get_frozen_credentials()
    except (BotoCoreError, ClientError) as exc:
        return ProfileCredentials(profile=profile, reason=str(exc))

    env = {
        "AWS_ACCESS_KEY_ID": frozen.access_key,
        "AWS_SECRET_ACCESS_KEY": frozen.secret_key,
    }
    if frozen.token:
        env["AWS_SESSION_TOKEN"] = frozen.token
    if session.region_name:
        env["AWS_DEFAULT_REGION"] = session.region_name

    return ProfileCredentials(profile=profile, env=env)


def credential_env(profile: str) -> dict[str, str] | None:
    """Environment variables for a profile, or None to rely on ambient resolution."""
    credentials = resolve_profile_env(profile)
    if not credentials.available:
        ic(f"Could not read AWS credentials from profile '{profile}': {credentials.reason}")
        ic("Proceeding without setting AWS credentials from profile")
        return None
    return credentials.env


def validate_credentials(profile: str) -> str:
    """Check that the profile's credentials are accepted by AWS.

    Args:
        profile: Name of the AWS profile.

    Returns:
        The ARN of the authenticated identity.

    Raises:
        CredentialsError: If the profile is missing or AWS rejects the credentials.

    """
    try:
        identity = boto3.Session(profile_name=profile).client("sts").get_caller_identity()
    except (BotoCoreError, ClientError) as exc:
        raise CredentialsError(f"AWS credentials for profile '{profile}' are not valid: {exc}") from exc

    ic(identity)
    return str(identity.get("Arn", ""))
