"""Ansible workspace assembly and role execution."""
import shutil
import sys

from devenv.config import BootstrapSettings, ROLE_RUNNER
from devenv.utils import BootstrapError, ensure_symlink, log_action, log_info, run


def assemble_workspace(settings: BootstrapSettings, dry_run: bool = False) -> None:
    """Build the scratch directory ansible-playbook is run from.

    Inventory and host_vars come from the private repo, playbooks and roles
    from the scripts repo.
    """
    workspace = settings.workspace
    if dry_run:
        log_action(f"[DRY RUN] Would assemble ansible workspace in {workspace}")
        return

    log_action(f"Assembling ansible workspace in {workspace}...")
    try:
        workspace.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BootstrapError(f"Failed to create {workspace}") from e

    ensure_symlink(settings.inventory_file, workspace / "hosts")
    ensure_symlink(settings.private_checkout / "host_vars", workspace / "host_vars")
    ensure_symlink(settings.scripts_checkout / "scripts", workspace / "playbooks")
    # Resolves through the playbooks link, so this lands inside the scripts checkout
    ensure_symlink(settings.scripts_checkout / "roles", workspace / "playbooks" / "roles")


def run_role(settings: BootstrapSettings, role: str, dry_run: bool = False) -> None:
    """Apply a single role to this server via the role-runner playbook."""
    if dry_run:
        log_action(f"[DRY RUN] Would run role {role}")
        return

    log_action(f"Running role {role}...")
    run(
        "ansible-playbook", "-i", "hosts", ROLE_RUNNER,
        "-e", f"host={settings.server}", "-e", f"role={role}",
        label=f"Failed to run role {role}",
        _cwd=str(settings.workspace),
        _out=sys.stdout,
        _err=sys.stderr,
    )


def promote_inventory(settings: BootstrapSettings, dry_run: bool = False) -> None:
    """Install this server's inventory as the system-wide ansible hosts file."""
    target = settings.system_inventory
    if dry_run:
        log_action(f"[DRY RUN] Would copy {settings.inventory_file} to {target}")
        return

    log_action(f"Copying {settings.inventory_file} to {target}...")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(settings.inventory_file, target)
    except OSError as e:
        raise BootstrapError(f"Failed to install {target}") from e


def remove_workspace(settings: BootstrapSettings, dry_run: bool = False) -> None:
    """Delete the scratch workspace; the checkouts it points into are kept."""
    workspace = settings.workspace
    if dry_run:
        log_action(f"[DRY RUN] Would remove {workspace}")
        return

    if not workspace.exists():
        log_info(f"{workspace} already removed.")
        return

    log_action(f"Removing {workspace}...")
    try:
        shutil.rmtree(workspace)
    except OSError as e:
        raise BootstrapError(f"Failed to remove {workspace}") from e
