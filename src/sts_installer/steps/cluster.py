"""Steps that deploy the cluster and check its STS configuration."""

import base64
import binascii
from typing import Any

import yaml
from icecream import ic
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from sts_installer import console
from sts_installer.artifacts import OPENSHIFT_INSTALL, file_exists
from sts_installer.exceptions import ArtifactError
from sts_installer.steps.base import Step

# In STS mode the installer must not leave the root credentials in the cluster
ROOT_CREDENTIALS_SECRET = ("kube-system", "aws-creds")
# A component secret that should reference an IAM role instead of static keys
COMPONENT_SECRET = ("openshift-image-registry", "installer-cloud-credentials")
ROLE_MARKERS = ("role_arn", "web_identity_token_file")


def decode_secret_data(data: dict[str, str] | None) -> str:
    """Decode and concatenate the values of a Secret's ``data`` field."""
    decoded: list[str] = []
    for key, value in (data or {}).items():
        try:
            decoded.append(base64.b64decode(value).decode("utf-8", errors="replace"))
        except (binascii.Error, TypeError) as exc:
            ic(key, exc)
    return "\n".join(decoded)


class DeployCluster(Step):
    """Run openshift-install to create the cluster."""

    number = 10
    name = "Deploy cluster"

    def execute(self) -> None:
        console.action("Deploying the cluster; this usually takes 30 to 45 minutes")
        self.executor.run_interactive(
            [
                str(self.store.binary_path(OPENSHIFT_INSTALL)),
                "create",
                "cluster",
                "--dir",
                str(self.store.cluster_dir),
                "--log-level=debug",
            ],
            env=self.aws_env(),
        )


class VerifyInstallation(Step):
    """Check that the cluster runs with short-lived credentials.

    Both checks are advisory: unexpected results and API errors are
    reported as warnings and never fail the step.
    """

    number = 11
    name = "Verify installation"

    def _api(self) -> Any:
        kubeconfig = self.store.kubeconfig
        if not file_exists(kubeconfig):
            raise ArtifactError(f"kubeconfig not found at {kubeconfig}")
        try:
            api_client = config.new_client_from_config(config_file=str(kubeconfig))
        except (ConfigException, TypeError, yaml.YAMLError) as e:
            # An interrupted deploy can leave a truncated kubeconfig behind
            raise ArtifactError(f"Invalid kubeconfig at {kubeconfig}: {e}") from e
        return client.CoreV1Api(api_client)

    @staticmethod
    def _check_root_credentials_absent(core_v1_api: Any) -> None:
        namespace, name = ROOT_CREDENTIALS_SECRET
        try:
            core_v1_api.read_namespaced_secret(name, namespace)
        except ApiException as e:
            if e.status == 404:
                console.success(f"Root credentials secret {namespace}/{name} does not exist")
            else:
                console.warning(f"Could not check for secret {namespace}/{name}: {e.reason}")
            return
        except MaxRetryError as e:
            console.warning(f"Failed to connect to the cluster API: {e.reason}")
            return

        console.warning(f"Root credentials secret {namespace}/{name} exists; expected it to be absent")

    @staticmethod
    def _check_component_uses_role(core_v1_api: Any) -> None:
        namespace, name = COMPONENT_SECRET
        try:
            secret = core_v1_api.read_namespaced_secret(name, namespace)
        except ApiException as e:
            console.warning(f"Could not read secret {namespace}/{name}: {e.reason}")
            return
        except MaxRetryError as e:
            console.warning(f"Failed to connect to the cluster API: {e.reason}")
            return

        payload = decode_secret_data(secret.data)
        if any(marker in payload for marker in ROLE_MARKERS):
            console.success(f"Secret {namespace}/{name} uses an IAM role")
        else:
            console.warning(f"Secret {namespace}/{name} does not reference an IAM role")

    def execute(self) -> None:
        core_v1_api = self._api()
        with console.spinner("Verifying STS configuration..."):
            self._check_root_credentials_absent(core_v1_api)
            self._check_component_uses_role(core_v1_api)
