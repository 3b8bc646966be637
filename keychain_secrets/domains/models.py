"""Domain models for secret definitions, project mappings and settings."""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

DEFAULT_SERVICE = "secrets-manager"
DEFAULT_ENV_FILE = "~/.env"
DEFAULT_LOG_FILE = "/tmp/secrets-manager-export.log"
DEFAULT_BACKEND = "keyring"

SUPPORTED_BACKENDS = ("keyring", "gcp")


@dataclass(frozen=True)
class SecretDefinition:
    """A secret the config knows about."""
    account_name: str  # identifier in the credential store
    env_var: str  # variable name written to .env files
    description: str


@dataclass(frozen=True)
class ProjectMapping:
    """A project directory and the env vars it should receive."""
    path: str
    wanted_vars: Tuple[str, ...]


@dataclass(frozen=True)
class Settings:
    """Values from the [settings] section, defaults already applied."""
    service: str = DEFAULT_SERVICE
    env_file: str = DEFAULT_ENV_FILE
    log_file: str = DEFAULT_LOG_FILE
    backend: str = DEFAULT_BACKEND
    gcp_project: Optional[str] = None
    gcp_credentials: Optional[str] = None


@dataclass(frozen=True)
class ConfigModel:
    """
    Immutable view of a parsed config file.

    Lookup tables are built once at construction so that account name and
    env var resolution does not scan the definitions on every call.
    """
    settings: Settings
    secrets: Tuple[SecretDefinition, ...]
    projects: Tuple[ProjectMapping, ...] = ()
    _by_account: Dict[str, SecretDefinition] = field(init=False, repr=False, compare=False)
    _account_by_env_var: Dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # frozen dataclass: bypass __setattr__ for derived fields
        object.__setattr__(
            self, "_by_account", {s.account_name: s for s in self.secrets}
        )
        object.__setattr__(
            self, "_account_by_env_var", {s.env_var: s.account_name for s in self.secrets}
        )

    @property
    def secret_count(self) -> int:
        return len(self.secrets)

    def definition_for(self, account_name: str) -> Optional[SecretDefinition]:
        """Return the definition stored under account_name, if any."""
        return self._by_account.get(account_name)

    def account_for(self, env_var: str) -> Optional[str]:
        """Reverse lookup used by import: env var -> account name."""
        return self._account_by_env_var.get(env_var)
