"""Utility functions for the bootstrap tool."""
import enum
import logging
import os
import re
import shutil
from pathlib import Path
from typing import Union

import sh
import typer

logger = logging.getLogger(__name__)

_URL_CREDENTIALS = re.compile(r"(://[^/:@\s]+:)[^@\s]+@")


class BootstrapError(RuntimeError):
    """Raised for any failure that aborts the bootstrap."""


class EnsureResult(enum.Enum):
    """Outcome of an ensure-or-skip step."""

    CREATED = "created"
    PRESENT = "already-present"

    @property
    def created(self) -> bool:
        return self is EnsureResult.CREATED


def fail(message: str) -> None:
    """Abort the bootstrap with a labelled error."""
    raise BootstrapError(message)


def command_exists(command: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(command) is not None


def is_root() -> bool:
    """Check if the script is running as root."""
    return os.geteuid() == 0


def redact(text: str) -> str:
    """Mask credentials embedded in URLs."""
    return _URL_CREDENTIALS.sub(r"\1***@", text)


def log_info(message: str) -> None:
    """Log an informational message."""
    print(f"[INFO] {message}")


def log_action(message: str) -> None:
    """Log an action being performed."""
    print(f"  -> {message}")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration.

    Verbose mode logs every external command line, with URL credentials masked.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    # sh logs raw command lines, which would include the api key
    logging.getLogger("sh").setLevel(logging.WARNING)


def run(program: str, *args: str, label: str, **kwargs):
    """Run an external program through sh.

    Any failure to find or run the program is turned into a BootstrapError
    carrying ``label``.
    """
    logger.debug("Running: %s", redact(" ".join([program, *map(str, args)])))
    try:
        return sh.Command(program)(*args, **kwargs)
    except sh.CommandNotFound as e:
        raise BootstrapError(f"{label} ({program} not found)") from e
    except sh.ErrorReturnCode as e:
        raise BootstrapError(label) from e


def ensure_symlink(source: Path, link: Path, dry_run: bool = False) -> EnsureResult:
    """Create ``link`` pointing at ``source`` unless something is already there."""
    if link.is_symlink() or link.exists():
        return EnsureResult.PRESENT

    if dry_run:
        log_action(f"[DRY RUN] Would link {link} -> {source}")
        return EnsureResult.CREATED

    try:
        link.symlink_to(source)
    except OSError as e:
        raise BootstrapError(f"Failed to link {link} -> {source}") from e
    return EnsureResult.CREATED


def ensure_directory(path: Path, owner: str, mode: str, dry_run: bool = False) -> EnsureResult:
    """Create a directory owned by ``owner`` with ``mode`` unless it already exists."""
    if path.is_dir():
        log_info(f"{path} already exists.")
        return EnsureResult.PRESENT

    if dry_run:
        log_action(f"[DRY RUN] Would create {path} (owner {owner}, mode {mode})")
        return EnsureResult.CREATED

    log_action(f"Creating {path}...")
    run("mkdir", "-p", str(path), label=f"Failed to create {path}")
    run("chown", f"{owner}:", str(path), label=f"Failed to set ownership of {path}")
    run("chmod", mode, str(path), label=f"Failed to chmod {path}")
    return EnsureResult.CREATED


def wait_for_operator(message: str) -> None:
    """Block until the operator confirms an out-of-band step."""
    log_info(message)
    typer.prompt(
        "Press enter to continue",
        default="",
        show_default=False,
        hide_input=True,
        prompt_suffix=".",
    )


def write_file(path: Union[str, Path], content: str, label: str) -> None:
    """Write a text file, labelling any OS failure."""
    try:
        Path(path).write_text(content)
    except OSError as e:
        raise BootstrapError(label) from e
