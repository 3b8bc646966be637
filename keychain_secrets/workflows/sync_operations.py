"""Synchronization between the credential store and .env files.

Three operations, all driven by a loaded ConfigModel:

- export_secrets: store -> global .env and per-project .env files
- import_secrets: existing .env files -> store, never overwriting
- secrets_status: which secrets are stored and which projects exist

Each operation keeps going when a single secret or file fails and reports
the failure, instead of aborting the batch. Reports carry counts, account
names and paths but never secret values.
"""
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from ..domains.activity_log import ActivityLog
from ..domains.envfile import EnvPairs, FileError, read_env_file, write_env_file
from ..domains.models import ConfigModel, ProjectMapping, SecretDefinition
from ..domains.store import SecretStore, StoreError
from .secret_operations import mask_value

logger = logging.getLogger(__name__)


@dataclass
class WrittenFile:
    path: str
    keys_written: int


@dataclass
class FailedFile:
    path: str
    reason: str


@dataclass
class ExportReport:
    """Outcome of an export run."""
    secrets_found: int = 0
    secrets_total: int = 0
    written: List[WrittenFile] = field(default_factory=list)
    skipped_projects: List[str] = field(default_factory=list)  # directory missing
    failed: List[FailedFile] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class ImportReport:
    """Outcome of an import run. Holds account names, never values."""
    sources: List[str] = field(default_factory=list)
    imported: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)  # already in store
    failed: List[str] = field(default_factory=list)  # store.set raised
    unreadable: List[FailedFile] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.imported)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.unreadable


@dataclass
class SecretStatus:
    definition: SecretDefinition
    stored: bool
    preview: str = ""  # masked, empty when not stored


@dataclass
class ProjectStatus:
    project: ProjectMapping
    exists: bool


@dataclass
class StatusReport:
    secrets: List[SecretStatus] = field(default_factory=list)
    projects: List[ProjectStatus] = field(default_factory=list)

    @property
    def stored_count(self) -> int:
        return sum(1 for status in self.secrets if status.stored)


def _log(activity_log: Optional[ActivityLog], message: str) -> None:
    logger.debug(message)
    if activity_log is not None:
        activity_log.write(message)


def _resolve_values(config: ConfigModel, store: SecretStore) -> Dict[str, str]:
    """Read every defined secret once; env_var -> value for non-empty values only."""
    resolved: Dict[str, str] = {}
    for secret in config.secrets:
        value = store.get(secret.account_name)
        if value:
            resolved[secret.env_var] = value
        else:
            logger.debug(f"{secret.account_name} not set, leaving {secret.env_var} out")
    return resolved


def _pairs_for(config: ConfigModel, resolved: Dict[str, str], wanted: Optional[set] = None) -> EnvPairs:
    # declaration order from [secrets], regardless of the order in a project's var list
    return [
        (secret.env_var, resolved[secret.env_var])
        for secret in config.secrets
        if secret.env_var in resolved and (wanted is None or secret.env_var in wanted)
    ]


def _write_destination(
    report: ExportReport,
    activity_log: Optional[ActivityLog],
    path: str,
    pairs: EnvPairs,
    timestamp: datetime,
) -> None:
    try:
        write_env_file(path, pairs, timestamp)
    except FileError as e:
        logger.error(f"Failed to write {path}: {e.reason}")
        _log(activity_log, f"Failed to write {path}: {e.reason}")
        report.failed.append(FailedFile(path=path, reason=e.reason))
        return

    _log(activity_log, f"Wrote {path}")
    report.written.append(WrittenFile(path=path, keys_written=len(pairs)))


def export_secrets(
    config: ConfigModel,
    store: SecretStore,
    activity_log: Optional[ActivityLog] = None,
    timestamp: Optional[datetime] = None,
) -> ExportReport:
    """
    Write the global .env and every existing project's .env from the store.

    Args:
        config: Loaded configuration
        store: Credential store to read from
        activity_log: Where to record phase markers, counts and paths
        timestamp: Time shown in file headers, defaults to now; pass a fixed
            value to get byte-identical output across runs

    Returns:
        ExportReport listing written files, skipped projects and failures

    Behavior:
        - Secrets that are absent or empty in the store are left out of every file
        - Project files contain only the project's wanted vars that resolved
        - Projects whose directory does not exist are skipped, never created
        - A failed destination does not stop the remaining destinations
        - Existing .env files are replaced, never deleted
    """
    timestamp = timestamp or datetime.now()
    report = ExportReport(secrets_total=config.secret_count)

    _log(activity_log, "=== Export started ===")

    resolved = _resolve_values(config, store)
    report.secrets_found = len(resolved)
    _log(activity_log, f"Read {report.secrets_found} of {report.secrets_total} secrets from store")

    _write_destination(
        report, activity_log, config.settings.env_file, _pairs_for(config, resolved), timestamp
    )

    for project in config.projects:
        if not os.path.isdir(project.path):
            logger.info(f"Skipping {project.path}: directory not found")
            report.skipped_projects.append(project.path)
            continue

        pairs = _pairs_for(config, resolved, set(project.wanted_vars))
        _write_destination(
            report, activity_log, os.path.join(project.path, ".env"), pairs, timestamp
        )

    _log(activity_log, "=== Export complete ===")
    return report


def collect_env_sources(config: ConfigModel) -> List[str]:
    """
    Existing .env files to import from: global file first, then projects in config order.

    Paths are deduplicated by their resolved location, so a project whose
    .env is the global file is scanned only once.
    """
    candidates = [config.settings.env_file]
    candidates.extend(os.path.join(project.path, ".env") for project in config.projects)

    sources: List[str] = []
    seen = set()
    for path in candidates:
        if not os.path.isfile(path):
            continue
        key = os.path.realpath(path)
        if key in seen:
            continue
        seen.add(key)
        sources.append(path)
    return sources


def import_secrets(
    config: ConfigModel,
    store: SecretStore,
    activity_log: Optional[ActivityLog] = None,
) -> ImportReport:
    """
    Copy secrets from existing .env files into the store.

    Args:
        config: Loaded configuration; only its env vars are importable
        store: Credential store to write to
        activity_log: Where to record counts and paths

    Returns:
        ImportReport with imported, skipped and failed account names

    Behavior:
        - Keys that map to no configured env var are ignored
        - Empty values are ignored
        - A value already in the store always wins; import never overwrites
        - Among several files, the earliest scanned value wins, since later
          files see the secret as already stored
        - Import never writes .env files; run export afterwards for that
    """
    report = ImportReport()
    _log(activity_log, "=== Import started ===")

    for path in collect_env_sources(config):
        report.sources.append(path)
        try:
            pairs = read_env_file(path)
        except FileError as e:
            logger.error(f"Skipping {path}: {e.reason}")
            report.unreadable.append(FailedFile(path=path, reason=e.reason))
            continue

        logger.info(f"Scanning {path}")
        for key, value in pairs:
            if not value:
                continue
            account_name = config.account_for(key)
            if account_name is None:
                continue

            if store.get(account_name):
                logger.info(f"{account_name} already in store, skipping")
                report.skipped.append(account_name)
                continue

            try:
                store.set(account_name, value)
            except StoreError as e:
                logger.error(f"Failed to import {account_name}: {e}")
                report.failed.append(account_name)
                continue
            logger.info(f"Imported {account_name} from {path}")
            report.imported.append(account_name)

    _log(
        activity_log,
        f"Imported {report.imported_count}, skipped {report.skipped_count}, "
        f"failed {len(report.failed)} from {len(report.sources)} files",
    )
    _log(activity_log, "=== Import complete ===")
    return report


def secrets_status(config: ConfigModel, store: SecretStore) -> StatusReport:
    """
    Report which secrets are stored and which project directories exist.

    Read-only: nothing is written to the store or the filesystem. Values are
    reduced to a masked preview.
    """
    report = StatusReport()
    for secret in config.secrets:
        value = store.get(secret.account_name)
        report.secrets.append(
            SecretStatus(definition=secret, stored=bool(value), preview=mask_value(value) if value else "")
        )
    for project in config.projects:
        report.projects.append(ProjectStatus(project=project, exists=os.path.isdir(project.path)))
    return report
