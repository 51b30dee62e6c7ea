"""Repository acquisition: bootstrap clones and persistent checkouts."""
from typing import List

from devenv.config import BootstrapSettings, PERSISTENT_REPOS, SCRIPTS_REPO_HTTPS
from devenv.utils import EnsureResult, ensure_directory, fail, log_action, log_info, run


def clone_private_repo(settings: BootstrapSettings, dry_run: bool = False) -> EnsureResult:
    """Clone the private configuration repo using the api key."""
    dest = settings.private_checkout
    if dest.is_dir():
        log_info(f"{dest} already exists.")
        return EnsureResult.PRESENT

    if dry_run:
        log_action(f"[DRY RUN] Would clone the private ansible repo into {dest}")
        return EnsureResult.CREATED

    log_action(f"Cloning the private ansible repo into {dest}...")
    run("git", "clone", "-q", settings.private_repo_url, str(dest),
        label="Failed to clone the private ansible repo")
    return EnsureResult.CREATED


def verify_host_entries(settings: BootstrapSettings, dry_run: bool = False) -> None:
    """Check the private repo knows about this server."""
    if dry_run and not settings.private_checkout.is_dir():
        log_action(f"[DRY RUN] Would verify inventory entries for {settings.server}")
        return

    if not settings.inventory_file.is_file():
        fail(f"Unable to find ansible hosts file for {settings.server}")

    if not settings.host_vars_dir.is_dir():
        fail(f"Unable to find ansible host_vars directory for {settings.server}")


def clone_scripts_repo(settings: BootstrapSettings, dry_run: bool = False) -> EnsureResult:
    """Clone the public roles and playbooks repo anonymously."""
    dest = settings.scripts_checkout
    if dest.is_dir():
        log_info(f"{dest} already exists.")
        return EnsureResult.PRESENT

    if dry_run:
        log_action(f"[DRY RUN] Would clone {SCRIPTS_REPO_HTTPS} into {dest}")
        return EnsureResult.CREATED

    log_action(f"Cloning {SCRIPTS_REPO_HTTPS} into {dest}...")
    run("git", "clone", "-q", SCRIPTS_REPO_HTTPS, str(dest),
        label="Failed to clone the ansible scripts repo")
    return EnsureResult.CREATED


def create_persistent_directory(settings: BootstrapSettings, dry_run: bool = False) -> EnsureResult:
    """Create the long-lived ansible directory on persistent storage."""
    return ensure_directory(settings.persistent_dir, settings.user, "750", dry_run=dry_run)


def checkout_persistent_repos(settings: BootstrapSettings, dry_run: bool = False) -> List[EnsureResult]:
    """Clone the working copies of both repos as the target user.

    Cloning over ssh relies on the keys registered earlier, so this runs
    through ``sudo -iu`` rather than as root.
    """
    results = []
    for name, url in PERSISTENT_REPOS:
        dest = settings.persistent_dir / name
        if dest.is_dir():
            log_info(f"{dest} already exists.")
            results.append(EnsureResult.PRESENT)
            continue

        if dry_run:
            log_action(f"[DRY RUN] Would clone {url} into {dest} as {settings.user}")
            results.append(EnsureResult.CREATED)
            continue

        log_action(f"Cloning {url} into {dest} as {settings.user}...")
        run("sudo", "-iu", settings.user, "git", "clone", url, str(dest),
            label=f"Failed to checkout {name}", _fg=True)
        results.append(EnsureResult.CREATED)
    return results
