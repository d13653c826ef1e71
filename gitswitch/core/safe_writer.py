"""Compare, back up, then write: safe replacement of a configuration file."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, cast

from ..utils import paths
from ..utils.logging import get_logger
from .errors import BackupError, IoError

logger = get_logger("safe_writer")

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class UpdateStatus(Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class UpdatePolicy:
    """How a single update treats the file it replaces.

    ``keep_previous`` additionally copies the replaced file to an ``old``
    sibling next to the target. ``atomic_write`` writes to a temporary file in
    the target directory and renames it over the target instead of truncating
    the target in place.
    """

    backup_enabled: bool = True
    backup_dir: Path = field(default_factory=paths.backup_dir)
    keep_previous: bool = False
    atomic_write: bool = False


@dataclass(frozen=True)
class UpdateOutcome:
    status: UpdateStatus
    target: Path
    backup_path: Optional[Path] = None
    previous_path: Optional[Path] = None

    @property
    def changed(self) -> bool:
        return self.status is UpdateStatus.UPDATED

    @property
    def message(self) -> str:
        if self.changed:
            return f"{self.target.name} updated successfully"
        return f"{self.target.name} is already up to date"


class _Stage(Enum):
    READ = "read"
    COMPARE = "compare"
    BACKUP = "backup"
    WRITE = "write"
    DONE = "done"


@dataclass
class _Run:
    target: Path
    content: str
    current: Optional[str] = None
    backup_path: Optional[Path] = None
    previous_path: Optional[Path] = None
    outcome: Optional[UpdateOutcome] = None

    @property
    def target_exists(self) -> bool:
        return self.current is not None


def backup_extension(target: Path) -> str:
    """Extension used for backups of ``target``.

    Dotfiles without a further suffix use their name, so ``.gitconfig``
    backs up as ``backup_<timestamp>.gitconfig``.
    """
    if target.suffix:
        return target.suffix[1:]
    return target.name.lstrip(".") or "bak"


def backup_name(target: Path, moment: datetime) -> str:
    return f"backup_{moment.strftime(BACKUP_TIMESTAMP_FORMAT)}.{backup_extension(target)}"


def previous_copy_path(target: Path) -> Path:
    name = target.name
    prefix = "old" if name.startswith(".") else "old."
    return target.with_name(prefix + name)


class SafeConfigWriter:
    """Apply new full-text content to one file without losing the old one.

    Each call to :meth:`apply` walks READ -> COMPARE -> BACKUP -> WRITE ->
    DONE, leaving from COMPARE straight to DONE when nothing changed. The
    backup always completes before the write starts, and a failed backup
    aborts with the target untouched. Concurrent calls on the same path are
    not serialised.
    """

    def __init__(
        self,
        policy: UpdatePolicy | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.policy = policy or UpdatePolicy()
        self._clock = clock
        self._handlers: Dict[_Stage, Callable[[_Run], _Stage]] = {
            _Stage.READ: self._read,
            _Stage.COMPARE: self._compare,
            _Stage.BACKUP: self._backup,
            _Stage.WRITE: self._write,
        }

    def apply(self, target: str | os.PathLike[str], content: str) -> UpdateOutcome:
        run = _Run(target=Path(target), content=content)
        stage = _Stage.READ
        while stage is not _Stage.DONE:
            stage = self._handlers[stage](run)
        # Only COMPARE and WRITE lead to DONE, and both record an outcome.
        return cast(UpdateOutcome, run.outcome)

    def _read(self, run: _Run) -> _Stage:
        try:
            with open(run.target, "r", encoding="utf-8", newline="") as handle:
                run.current = handle.read()
        except FileNotFoundError:
            run.current = None
        except (OSError, UnicodeDecodeError) as exc:
            raise IoError(f"Failed to read {run.target}: {exc}") from exc
        return _Stage.COMPARE

    def _compare(self, run: _Run) -> _Stage:
        if (run.current or "") == run.content:
            logger.info("%s is already up to date", run.target)
            run.outcome = UpdateOutcome(UpdateStatus.UNCHANGED, run.target)
            return _Stage.DONE
        return _Stage.BACKUP

    def _backup(self, run: _Run) -> _Stage:
        if not run.target_exists:
            return _Stage.WRITE

        if self.policy.backup_enabled:
            destination = self.policy.backup_dir / backup_name(run.target, self._clock())
            try:
                self.policy.backup_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise BackupError(
                    f"Failed to create backups directory {self.policy.backup_dir}: {exc}"
                ) from exc
            try:
                shutil.copy2(run.target, destination)
            except OSError as exc:
                raise BackupError(f"Failed to create backup {destination}: {exc}") from exc
            run.backup_path = destination
            logger.info("Backed up %s to %s", run.target, destination)

        if self.policy.keep_previous:
            previous = previous_copy_path(run.target)
            try:
                shutil.copy2(run.target, previous)
            except OSError as exc:
                raise BackupError(f"Failed to create old config {previous}: {exc}") from exc
            run.previous_path = previous
            logger.debug("Kept previous content of %s in %s", run.target, previous)

        return _Stage.WRITE

    def _write(self, run: _Run) -> _Stage:
        if self.policy.atomic_write:
            self._write_atomic(run.target, run.content)
        else:
            try:
                with open(run.target, "w", encoding="utf-8", newline="") as handle:
                    handle.write(run.content)
            except OSError as exc:
                raise IoError(f"Failed to write {run.target}: {exc}") from exc
        logger.info("Wrote %d characters to %s", len(run.content), run.target)
        run.outcome = UpdateOutcome(
            UpdateStatus.UPDATED,
            run.target,
            backup_path=run.backup_path,
            previous_path=run.previous_path,
        )
        return _Stage.DONE

    @staticmethod
    def _write_atomic(target: Path, content: str) -> None:
        tmp_path = target.with_name(target.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            tmp_path.replace(target)
        except OSError as exc:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            except OSError:
                logger.warning("Could not remove temporary file %s", tmp_path)
            raise IoError(f"Failed to write {target}: {exc}") from exc
