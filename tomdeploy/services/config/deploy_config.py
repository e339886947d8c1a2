from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional

from tomdeploy.services.config.errors import ConfigurationError
from tomdeploy.services.config.tls_issuer import TlsIssuer, select_tls_issuer


@dataclass(frozen=True)
class DeployConfig:
    """Immutable configuration for both convergence pipelines.

    Construct it once at startup (usually via ``from_env``) and pass it to each
    setup service. Validation runs on construction, so an instance that exists
    is always usable: mandatory fields are set, the Let's Encrypt environment is
    known, and the zone lies inside ``location`` (the static ingress address is
    allocated in ``location`` and must share the cluster's region).
    """

    hostname: str
    contact_email: str
    project_id: str = "tom-demo-project"
    project_description: str = "TOM Demo Project Prebake"
    zone: str = "us-central1-a"
    location: str = "us-central1"
    cluster_name: str = "tom-demo-cluster"
    machine_type: str = "e2-standard-4"
    node_count: int = 1
    registry_host: str = ""
    image_repo: str = "tom-demo-repo"
    image_name: str = "tom-demo-image"
    image_full_name: str = ""
    image_tag: str = "dev"
    kubernetes_namespace: str = "tom-demo"
    static_ip_name: str = "tom-static-ip"
    letsencrypt_env: str = "staging"
    chart_dir: Path = Path("helm-chart")
    values_file: Optional[Path] = None
    build_context: Path = Path(".")
    release_name: str = "demo"
    secret_name: str = "tom-demo-secrets"
    tls_secret_name: str = "tom-tls"
    node_service_account_id: str = "knodes"
    _tls_issuer: TlsIssuer = field(init=False, repr=False, compare=False)

    INGRESS_CLASS: ClassVar[str] = "nginx-ingress-private"

    def __post_init__(self) -> None:
        if not self.hostname or not self.hostname.strip():
            raise ConfigurationError("hostname is required (TOM_HOSTNAME)")
        if not self.contact_email or not self.contact_email.strip():
            raise ConfigurationError("contact email is required (CERTMANAGER_EMAIL)")
        if self.node_count < 1:
            raise ConfigurationError(f"node_count must be at least 1 (got {self.node_count})")
        if not self.zone.startswith(f"{self.location}-"):
            raise ConfigurationError(
                f"zone {self.zone!r} is not in location {self.location!r}; "
                "the static ingress address must be allocated in the cluster's region"
            )

        # Derived defaults; object.__setattr__ because the dataclass is frozen.
        if not self.registry_host:
            object.__setattr__(self, "registry_host", f"{self.location}-docker.pkg.dev")
        if not self.image_full_name:
            object.__setattr__(
                self,
                "image_full_name",
                f"{self.registry_host}/{self.project_id}/{self.image_repo}/{self.image_name}",
            )
        if self.values_file is None:
            object.__setattr__(self, "values_file", self.chart_dir / "values-dev.yaml")

        object.__setattr__(self, "_tls_issuer", select_tls_issuer(self.letsencrypt_env))

    @property
    def image(self) -> str:
        return f"{self.image_full_name}:{self.image_tag}"

    @property
    def node_service_account_email(self) -> str:
        return f"{self.node_service_account_id}@{self.project_id}.iam.gserviceaccount.com"

    @property
    def ingress_namespace(self) -> str:
        return f"{self.kubernetes_namespace}-ingress-nginx"

    @property
    def tls_issuer(self) -> TlsIssuer:
        return self._tls_issuer

    # Variable names used by the shell launcher, read when the upper-case name is unset.
    _LEGACY_NAMES: ClassVar[dict[str, str]] = {
        "PROJECT_DESCRIPTION": "proj_descr",
        "MACHINE_TYPE": "machine",
        "NODE_COUNT": "nodes",
        "STATIC_IP_NAME": "tom_static_ip_name",
    }

    @staticmethod
    def _getenv(name: str) -> str:
        for key in (name, DeployConfig._LEGACY_NAMES.get(name, name.lower())):
            value = (os.getenv(key) or "").strip()
            if value:
                return value
        return ""

    @staticmethod
    def _required(name: str) -> str:
        value = DeployConfig._getenv(name)
        if not value:
            raise ConfigurationError(f"Missing required environment variable: {name}")
        return value

    @staticmethod
    def _optional(name: str, default: str) -> str:
        return DeployConfig._getenv(name) or default

    @staticmethod
    def from_env() -> "DeployConfig":
        hostname = DeployConfig._required("TOM_HOSTNAME")
        contact_email = DeployConfig._required("CERTMANAGER_EMAIL")

        nodes_raw = DeployConfig._optional("NODE_COUNT", "1")
        try:
            node_count = int(nodes_raw)
        except ValueError as exc:
            raise ConfigurationError("Invalid NODE_COUNT; must be an integer") from exc

        chart_dir = Path(DeployConfig._optional("CHART_DIR", "helm-chart"))
        values_raw = DeployConfig._getenv("VALUES_FILE")

        return DeployConfig(
            hostname=hostname,
            contact_email=contact_email,
            project_id=DeployConfig._optional("PROJECT_ID", "tom-demo-project"),
            project_description=DeployConfig._optional("PROJECT_DESCRIPTION", "TOM Demo Project Prebake"),
            zone=DeployConfig._optional("ZONE", "us-central1-a"),
            location=DeployConfig._optional("LOCATION", "us-central1"),
            cluster_name=DeployConfig._optional("CLUSTER_NAME", "tom-demo-cluster"),
            machine_type=DeployConfig._optional("MACHINE_TYPE", "e2-standard-4"),
            node_count=node_count,
            registry_host=DeployConfig._optional("REGISTRY_HOST", ""),
            image_repo=DeployConfig._optional("IMAGE_REPO", "tom-demo-repo"),
            image_name=DeployConfig._optional("IMAGE_NAME", "tom-demo-image"),
            image_full_name=DeployConfig._optional("IMAGE_FULL_NAME", ""),
            image_tag=DeployConfig._optional("IMAGE_TAG", "dev"),
            kubernetes_namespace=DeployConfig._optional("KUBERNETES_NAMESPACE", "tom-demo"),
            static_ip_name=DeployConfig._optional("STATIC_IP_NAME", "tom-static-ip"),
            letsencrypt_env=DeployConfig._optional("LETSENCRYPT_ENV", "staging"),
            chart_dir=chart_dir,
            values_file=Path(values_raw) if values_raw else None,
            build_context=Path(DeployConfig._optional("BUILD_CONTEXT", ".")),
            release_name=DeployConfig._optional("RELEASE_NAME", "demo"),
            secret_name=DeployConfig._optional("SECRET_NAME", "tom-demo-secrets"),
            tls_secret_name=DeployConfig._optional("TLS_SECRET_NAME", "tom-tls"),
            node_service_account_id=DeployConfig._optional("NODE_SERVICE_ACCOUNT_ID", "knodes"),
        )
