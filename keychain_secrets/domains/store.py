"""Secret store capability and backend selection.

Every backend is namespaced by the configured service name and keyed by
account name, and exposes three operations:

- ``get(account)`` returns the value or None. It never raises: a backend
  failure is logged and reads as "not stored", so one bad lookup does not
  abort a batch.
- ``set(account, value)`` overwrites in place, raising StoreError on failure.
- ``delete(account)`` is idempotent, raising StoreError only on real failures.
"""
import logging
import os
from typing import Optional, Protocol

from .config_loader import ConfigError
from .models import Settings

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A single store operation failed."""
    pass


class SecretStore(Protocol):
    """Capability the sync engine needs from a credential store."""

    def get(self, account_name: str) -> Optional[str]:
        ...

    def set(self, account_name: str, value: str) -> None:
        ...

    def delete(self, account_name: str) -> None:
        ...


def create_store(settings: Settings) -> SecretStore:
    """
    Build the store backend selected by ``settings.backend``.

    Backend libraries are imported lazily so that a keyring-only user never
    needs the GCP client to load.

    Raises:
        ConfigError: If the GCP backend is selected without a project ID
    """
    if settings.backend == "gcp":
        from .gcp_client import GCPSecretStore

        project_id = settings.gcp_project or os.getenv("GCP_PROJECT")
        if not project_id:
            raise ConfigError(
                "GCP backend selected but no project ID configured.\n"
                "Set 'gcp_project' in [settings] or the GCP_PROJECT environment variable."
            )
        logger.debug(f"Using GCP Secret Manager backend (project {project_id})")
        return GCPSecretStore(
            namespace=settings.service,
            project_id=project_id,
            credentials_path=settings.gcp_credentials,
        )

    from .keyring_client import KeyringSecretStore

    logger.debug(f"Using keyring backend (service {settings.service})")
    return KeyringSecretStore(namespace=settings.service)
