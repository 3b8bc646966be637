"""Reading and writing ``.env`` files.

The format is deliberately minimal: one ``KEY=VALUE`` per line, ``#``
comments, no quoting, escaping or multi-line values. A value is everything
after the first ``=``, so values may themselves contain ``=``.
"""
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

GENERATOR = "keychain-secrets-manager"
ENV_FILE_MODE = 0o600
DIR_MODE = 0o755
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

EnvPairs = List[Tuple[str, str]]


class FileError(Exception):
    """A .env file could not be read or written."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def parse_env_lines(lines: Iterable[str]) -> EnvPairs:
    """
    Decode KEY=VALUE lines.

    Blank lines and ``#`` comments are skipped. Keys and values are trimmed.
    A line without ``=`` decodes to an empty value rather than an error.
    """
    pairs: EnvPairs = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        if not key:
            continue
        pairs.append((key, value.strip()))
    return pairs


def read_env_file(path: str) -> EnvPairs:
    """
    Read and decode a .env file.

    Raises:
        FileError: If the file cannot be read or is not valid UTF-8
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_env_lines(f)
    except (OSError, UnicodeDecodeError) as e:
        raise FileError(path, f"cannot read file ({e})") from e


def render_env_file(pairs: Sequence[Tuple[str, str]], timestamp: Optional[datetime] = None) -> str:
    """
    Encode pairs as .env text, preceded by the generated-file header.

    The caller decides the order of pairs; it is written as given.
    """
    stamp = (timestamp or datetime.now()).strftime(TIMESTAMP_FORMAT)
    lines = [
        f"# Auto-generated by {GENERATOR}. DO NOT EDIT.",
        "# Secrets are kept in the credential store. Run `secrets-manager export` to update.",
        f"# Last exported: {stamp}",
        "",
    ]
    lines.extend(f"{key}={value}" for key, value in pairs)
    return "\n".join(lines) + "\n"


def _ensure_parent_dir(path: Path) -> None:
    try:
        path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    except OSError as e:
        raise FileError(str(path), f"cannot create directory {path.parent} ({e})") from e


def write_env_file(
    path: str,
    pairs: Sequence[Tuple[str, str]],
    timestamp: Optional[datetime] = None,
) -> None:
    """
    Atomically write a .env file readable only by its owner.

    The content goes to a 0600 temp file in the destination directory which
    then replaces the destination, so the destination is either fully
    written or left exactly as it was.

    Args:
        path: Destination file
        pairs: Ordered (key, value) pairs
        timestamp: Time shown in the header, defaults to now

    Raises:
        FileError: If the directory cannot be created or the file cannot be written
    """
    target = Path(path)
    _ensure_parent_dir(target)
    content = render_env_file(pairs, timestamp)

    try:
        fd, tmp_path = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
    except OSError as e:
        raise FileError(path, f"cannot write file ({e})") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, ENV_FILE_MODE)
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            os.unlink(tmp_path)
        except OSError:
            logger.debug(f"Could not remove temp file {tmp_path}")
        raise FileError(path, f"cannot write file ({e})") from e

    logger.debug(f"Wrote {len(pairs)} keys to {path}")
