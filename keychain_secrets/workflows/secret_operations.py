"""Workflow for storing and removing individual secrets."""
import logging
from typing import Optional

from ..domains.models import ConfigModel
from ..domains.store import SecretStore

logger = logging.getLogger(__name__)

MASK = "****"
MIN_PREVIEW_LENGTH = 9  # shorter values are fully masked


def mask_value(value: Optional[str]) -> str:
    """
    Render a secret for display without revealing it.

    Values of 8 characters or fewer become ``****``; longer values keep the
    first and last four characters plus the length, e.g.
    ``sk-a...wxyz (51 chars)``.
    """
    if not value or len(value) < MIN_PREVIEW_LENGTH:
        return MASK
    return f"{value[:4]}...{value[-4:]} ({len(value)} chars)"


def resolve_account(config: ConfigModel, name: str) -> str:
    """
    Map a user-supplied name to an account name.

    Accepts either an account name or an env var from the config. Names the
    config does not know are returned unchanged and treated as custom
    account names.
    """
    if config.definition_for(name) is not None:
        return name
    account_name = config.account_for(name)
    if account_name is not None:
        logger.debug(f"Resolved env var {name} to account {account_name}")
        return account_name
    return name


def store_secret(config: ConfigModel, store: SecretStore, name: str, value: str) -> bool:
    """
    Store a secret, replacing any existing value.

    Args:
        config: Loaded configuration, used to resolve env var names
        store: Credential store
        name: Account name, configured env var, or custom account name
        value: Secret value; must not be empty

    Returns:
        True if an existing value was replaced

    Raises:
        ValueError: If value is empty
        StoreError: If the store rejects the write
    """
    if not value or not value.strip():
        raise ValueError("Secret value cannot be empty")

    account_name = resolve_account(config, name)
    replaced = store.get(account_name) is not None
    store.set(account_name, value)

    if config.definition_for(account_name) is None:
        logger.warning(
            f"'{account_name}' is not defined in [secrets]; it is stored but will not be exported"
        )
    logger.info(f"Stored '{account_name}'")
    return replaced


def remove_secret(config: ConfigModel, store: SecretStore, name: str) -> bool:
    """
    Delete a secret from the store.

    Returns:
        True if a value was stored before the delete

    Raises:
        StoreError: If the store fails to delete an existing secret
    """
    account_name = resolve_account(config, name)
    existed = store.get(account_name) is not None
    store.delete(account_name)
    logger.info(f"Removed '{account_name}'")
    return existed
