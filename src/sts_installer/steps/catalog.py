"""The fixed, ordered catalog of installation steps."""

from sts_installer.steps.base import Step
from sts_installer.steps.cluster import DeployCluster, VerifyInstallation
from sts_installer.steps.extraction import ExtractCcoctl, ExtractCredentialsRequests, ExtractInstaller
from sts_installer.steps.install_config import CreateInstallConfig, SetCredentialsMode
from sts_installer.steps.resources import CopyManifests, CopyTls, CreateAwsResources, CreateManifests

STEP_CATALOG: tuple[type[Step], ...] = (
    ExtractCredentialsRequests,
    ExtractInstaller,
    ExtractCcoctl,
    CreateInstallConfig,
    SetCredentialsMode,
    CreateManifests,
    CreateAwsResources,
    CopyManifests,
    CopyTls,
    DeployCluster,
    VerifyInstallation,
)

# Step numbers whose completion is bridged by the pipeline
EXTRACT_CREDENTIALS_REQUESTS = ExtractCredentialsRequests.number
SET_CREDENTIALS_MODE = SetCredentialsMode.number
