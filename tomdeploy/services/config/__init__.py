"""Configuration package (Facade).

Re-exports the public configuration types so callers import from one stable
path instead of knowing which module defines each one:

    from tomdeploy.services.config import DeployConfig, RetryConfig
"""

from tomdeploy.services.config.deploy_config import DeployConfig
from tomdeploy.services.config.errors import ConfigurationError
from tomdeploy.services.config.retry_config import RetryConfig
from tomdeploy.services.config.tls_issuer import TlsIssuer, select_tls_issuer

__all__ = ["ConfigurationError", "DeployConfig", "RetryConfig", "TlsIssuer", "select_tls_issuer"]
