"""GCP Secret Manager backend."""
import logging
import re
from typing import Optional

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from .store import StoreError

logger = logging.getLogger(__name__)

_INVALID_ID_CHARS = re.compile(r"[^a-zA-Z0-9_-]")

# OSError covers an unreadable service account file
_BACKEND_ERRORS = (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError, OSError)


class GCPSecretStore:
    """
    Wrapper around GCP Secret Manager client.

    Each account maps to one GCP secret named ``<namespace>-<account>``;
    the latest version holds the current value.
    """

    def __init__(self, namespace: str, project_id: str, credentials_path: Optional[str] = None):
        self.namespace = namespace
        self.project_id = project_id
        self.credentials_path = credentials_path
        self._client = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            if self.credentials_path:
                logger.debug(f"Using service account: {self.credentials_path}")
                self._client = secretmanager.SecretManagerServiceClient.from_service_account_file(
                    self.credentials_path
                )
            else:
                self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def secret_id(self, account_name: str) -> str:
        """GCP secret IDs allow only [a-zA-Z0-9_-]; anything else becomes '_'."""
        return _INVALID_ID_CHARS.sub("_", f"{self.namespace}-{account_name}")

    def _secret_path(self, account_name: str) -> str:
        return f"projects/{self.project_id}/secrets/{self.secret_id(account_name)}"

    def get(self, account_name: str) -> Optional[str]:
        """
        Fetch the latest version of a secret.

        Args:
            account_name: Account the secret is stored under

        Returns:
            Secret value or None if absent or the fetch fails
        """
        name = f"{self._secret_path(account_name)}/versions/latest"
        try:
            response = self.client.access_secret_version(request={"name": name})
            return response.payload.data.decode("UTF-8") or None
        except gcp_exceptions.NotFound:
            logger.debug(f"'{account_name}' not found in GCP Secret Manager")
            return None
        except UnicodeDecodeError:
            logger.warning(f"GCP secret for {account_name} is not valid UTF-8, skipping")
            return None
        except _BACKEND_ERRORS as e:
            logger.warning(f"GCP fetch failed for {account_name}: {e}")
            return None

    def set(self, account_name: str, value: str) -> None:
        """
        Add a new version holding value, creating the secret on first write.

        Adding a version replaces the current value without a window where
        the secret is absent.
        """
        payload = {"data": value.encode("UTF-8")}
        parent = self._secret_path(account_name)
        try:
            try:
                self.client.add_secret_version(request={"parent": parent, "payload": payload})
                return
            except gcp_exceptions.NotFound:
                logger.debug(f"Creating GCP secret {self.secret_id(account_name)}")

            self.client.create_secret(
                request={
                    "parent": f"projects/{self.project_id}",
                    "secret_id": self.secret_id(account_name),
                    "secret": {"replication": {"automatic": {}}},
                }
            )
            self.client.add_secret_version(request={"parent": parent, "payload": payload})
        except _BACKEND_ERRORS as e:
            raise StoreError(f"Failed to store '{account_name}' in GCP Secret Manager: {e}") from e

    def delete(self, account_name: str) -> None:
        """Delete the secret and all its versions. Deleting an absent secret is a no-op."""
        try:
            self.client.delete_secret(request={"name": self._secret_path(account_name)})
        except gcp_exceptions.NotFound:
            logger.debug(f"'{account_name}' not in GCP Secret Manager, nothing to delete")
        except _BACKEND_ERRORS as e:
            raise StoreError(f"Failed to delete '{account_name}' from GCP Secret Manager: {e}") from e
