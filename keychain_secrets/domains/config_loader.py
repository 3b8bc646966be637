"""Configuration loader for keychain-secrets-manager.

The config file has three sections:

    [settings]
    service  = secrets-manager
    env_file = ~/.env
    log_file = /tmp/secrets-manager-export.log

    [secrets]
    openai-api-key | OPENAI_API_KEY | OpenAI API key

    [projects]
    ~/code/my-app | OPENAI_API_KEY, DATABASE_URL

Parsing is tolerant: malformed lines are dropped and unknown sections or
settings are ignored. Only an empty [secrets] section, a duplicate name
or an unsupported backend aborts the load.
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .models import (
    ConfigModel,
    DEFAULT_BACKEND,
    DEFAULT_ENV_FILE,
    DEFAULT_LOG_FILE,
    DEFAULT_SERVICE,
    ProjectMapping,
    SecretDefinition,
    Settings,
    SUPPORTED_BACKENDS,
)
from .preferences import get_preference

logger = logging.getLogger(__name__)

KNOWN_SECTIONS = ("settings", "secrets", "projects")
PATH_SETTINGS = ("env_file", "log_file", "gcp_credentials")
SETTING_KEYS = ("service", "env_file", "log_file", "backend", "gcp_project", "gcp_credentials")


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def default_config_locations() -> List[Path]:
    home = Path.home()
    return [
        home / ".secrets.conf",
        home / ".config" / "keychain-secrets-manager" / "secrets.conf",
    ]


def get_config_path(explicit: Optional[str] = None) -> str:
    """
    Resolve which config file to load.

    Priority order:
    1. Path given on the command line
    2. User preference (stored in ~/.config/keychain-secrets-manager/preferences.json)
    3. ~/.secrets.conf
    4. ~/.config/keychain-secrets-manager/secrets.conf

    Returns:
        Path to the config file

    Raises:
        ConfigError: If no config file exists in any location
    """
    if explicit:
        config_path = expand_home(explicit)
        if not Path(config_path).is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        return config_path

    config_path_pref = get_preference("config_path")
    if config_path_pref:
        if Path(config_path_pref).is_file():
            logger.info(f"Using config from preference: {config_path_pref}")
            return config_path_pref
        logger.warning(f"Config path from preference doesn't exist: {config_path_pref}")

    for candidate in default_config_locations():
        if candidate.is_file():
            logger.info(f"Using default config location: {candidate}")
            return str(candidate)

    default_config = default_config_locations()[0]
    raise ConfigError(
        "No config file found. Set one up using one of these methods:\n\n"
        "1. Create the default config:\n"
        f"   $EDITOR {default_config}\n\n"
        "2. Point to an existing config file:\n"
        "   secrets-manager config set-path /path/to/secrets.conf\n\n"
        "3. Pass it explicitly:\n"
        "   secrets-manager --config /path/to/secrets.conf status\n"
    )


def expand_home(value: str) -> str:
    """Replace a leading ``~`` with the caller's home directory."""
    if value.startswith("~"):
        return str(Path.home()) + value[1:]
    return value


def _split_fields(line: str, maxsplit: int) -> List[str]:
    return [part.strip() for part in line.split("|", maxsplit)]


def _parse_secret_line(line: str) -> Optional[SecretDefinition]:
    # accountName | ENV_VAR | description (description may contain '|')
    if "|" not in line:
        return None
    fields = _split_fields(line, 2)
    account_name, env_var = fields[0], fields[1]
    if not account_name or not env_var:
        return None
    description = fields[2] if len(fields) > 2 and fields[2] else env_var
    return SecretDefinition(account_name=account_name, env_var=env_var, description=description)


def _parse_project_line(line: str) -> Optional[ProjectMapping]:
    # /path/to/project | VAR1, VAR2, ...
    if "|" not in line:
        return None
    path, var_list = _split_fields(line, 1)
    if not path or not var_list:
        return None

    wanted: List[str] = []
    for var in var_list.split(","):
        var = var.strip()
        if var and var not in wanted:
            wanted.append(var)
    if not wanted:
        return None
    return ProjectMapping(path=expand_home(path), wanted_vars=tuple(wanted))


def _build_settings(raw: Dict[str, str]) -> Settings:
    values: Dict[str, str] = {}
    for key, value in raw.items():
        if not value:
            continue
        values[key] = expand_home(value) if key in PATH_SETTINGS else value

    backend = values.get("backend", DEFAULT_BACKEND)
    if backend not in SUPPORTED_BACKENDS:
        raise ConfigError(
            f"Unsupported backend: {backend}\n"
            f"Supported backends: {', '.join(SUPPORTED_BACKENDS)}"
        )

    return Settings(
        service=values.get("service", DEFAULT_SERVICE),
        env_file=values.get("env_file", expand_home(DEFAULT_ENV_FILE)),
        log_file=values.get("log_file", DEFAULT_LOG_FILE),
        backend=backend,
        gcp_project=values.get("gcp_project"),
        gcp_credentials=values.get("gcp_credentials"),
    )


def _check_unique(secrets: List[SecretDefinition]) -> None:
    seen_accounts: Dict[str, int] = {}
    seen_env_vars: Dict[str, int] = {}
    for index, secret in enumerate(secrets):
        if secret.account_name in seen_accounts:
            raise ConfigError(
                f"Duplicate account name '{secret.account_name}' in [secrets] "
                f"(entries {seen_accounts[secret.account_name] + 1} and {index + 1})"
            )
        if secret.env_var in seen_env_vars:
            raise ConfigError(
                f"Duplicate env var '{secret.env_var}' in [secrets] "
                f"(entries {seen_env_vars[secret.env_var] + 1} and {index + 1})"
            )
        seen_accounts[secret.account_name] = index
        seen_env_vars[secret.env_var] = index


def parse_config(text: str, source: str = "<string>") -> ConfigModel:
    """
    Parse config text into a ConfigModel.

    Args:
        text: Raw config file contents
        source: Where the text came from, used in error messages

    Returns:
        Parsed, validated ConfigModel

    Raises:
        ConfigError: If no secrets are defined, a name is duplicated or the backend is unsupported
    """
    section: Optional[str] = None
    raw_settings: Dict[str, str] = {}
    secrets: List[SecretDefinition] = []
    projects: List[ProjectMapping] = []
    dropped: List[Tuple[int, str]] = []

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        if line.startswith("[") and line.endswith("]"):
            name = line[1:-1]
            section = name if name in KNOWN_SECTIONS else "unknown"
            if section == "unknown":
                logger.debug(f"{source}:{lineno}: ignoring unknown section {line}")
            continue

        if section == "settings":
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            if key in SETTING_KEYS:
                raw_settings[key] = value.strip()
        elif section == "secrets":
            secret = _parse_secret_line(line)
            if secret is None:
                dropped.append((lineno, section))
            else:
                secrets.append(secret)
        elif section == "projects":
            project = _parse_project_line(line)
            if project is None:
                dropped.append((lineno, section))
            else:
                projects.append(project)

    for lineno, section_name in dropped:
        logger.warning(f"{source}:{lineno}: skipping malformed [{section_name}] line")

    if not secrets:
        raise ConfigError(
            f"No secrets defined in config file: {source}\n"
            "Add a [secrets] section with at least one entry:\n"
            "[secrets]\n"
            "openai-api-key | OPENAI_API_KEY | OpenAI API key"
        )

    _check_unique(secrets)

    return ConfigModel(
        settings=_build_settings(raw_settings),
        secrets=tuple(secrets),
        projects=tuple(projects),
    )


def load_config(config_path: Optional[str] = None) -> ConfigModel:
    """
    Load and validate configuration from a secrets config file.

    Args:
        config_path: Explicit path; resolved with get_config_path() when omitted

    Returns:
        ConfigModel with settings, secret definitions and project mappings

    Raises:
        ConfigError: If the config file is missing, unreadable or invalid
    """
    path = get_config_path(config_path)

    try:
        with open(path, 'r', encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read config file at {path}: {e}")

    config = parse_config(text, source=path)

    logger.info(f"Configuration loaded successfully from {path}")
    logger.debug(
        f"{config.secret_count} secrets, {len(config.projects)} projects, "
        f"backend '{config.settings.backend}', service '{config.settings.service}'"
    )
    return config
