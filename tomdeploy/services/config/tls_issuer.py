from __future__ import annotations

from dataclasses import dataclass

from tomdeploy.services.config.errors import ConfigurationError


@dataclass(frozen=True)
class TlsIssuer:
    """cert-manager ClusterIssuer coordinates for one Let's Encrypt environment."""

    issuer_name: str
    acme_hostname: str

    @property
    def acme_server(self) -> str:
        return f"https://{self.acme_hostname}.letsencrypt.org/directory"


_ISSUERS: dict[str, TlsIssuer] = {
    "staging": TlsIssuer(issuer_name="letsencrypt-staging", acme_hostname="acme-staging-v02.api"),
    "prod": TlsIssuer(issuer_name="letsencrypt", acme_hostname="acme-v02.api"),
}


def select_tls_issuer(environment: str) -> TlsIssuer:
    """Map a Let's Encrypt environment name (``staging`` or ``prod``) to its issuer.

    Raises:
        ConfigurationError: for any other value. There is no fallback issuer.
    """

    issuer = _ISSUERS.get(environment)
    if issuer is None:
        raise ConfigurationError(
            f"Unrecognized Let's Encrypt environment: {environment!r} (expected one of: {', '.join(_ISSUERS)})"
        )
    return issuer
