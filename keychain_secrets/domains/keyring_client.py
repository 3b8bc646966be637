"""OS keyring backend (macOS Keychain, Secret Service, Windows Credential Locker)."""
import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .store import StoreError

logger = logging.getLogger(__name__)


class KeyringSecretStore:
    """Wrapper around the ``keyring`` library, one service name per config."""

    def __init__(self, namespace: str):
        self.namespace = namespace

    def get(self, account_name: str) -> Optional[str]:
        """
        Read a secret from the keyring.

        Args:
            account_name: Account the secret is stored under

        Returns:
            Secret value, or None if absent, empty or unreadable
        """
        try:
            value = keyring.get_password(self.namespace, account_name)
        except KeyringError as e:
            # e.g. the user denied the keychain access prompt
            logger.warning(f"Keyring lookup failed for {account_name}: {e}")
            return None
        return value or None

    def set(self, account_name: str, value: str) -> None:
        """Store or replace a secret. set_password overwrites in place."""
        try:
            keyring.set_password(self.namespace, account_name, value)
        except KeyringError as e:
            raise StoreError(f"Failed to store '{account_name}' in keyring: {e}") from e

    def delete(self, account_name: str) -> None:
        """Remove a secret. Removing an absent secret is a no-op."""
        try:
            keyring.delete_password(self.namespace, account_name)
        except PasswordDeleteError:
            logger.debug(f"'{account_name}' not in keyring, nothing to delete")
        except KeyringError as e:
            raise StoreError(f"Failed to delete '{account_name}' from keyring: {e}") from e
