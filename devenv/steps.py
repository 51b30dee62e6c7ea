"""Bootstrap workflow steps."""
from devenv.config import BootstrapSettings, CORE_ROLES, DISK_ROLE
from devenv.utils import command_exists, fail, log_action, log_info, run

REQUIRED_COMMANDS = ("git", "ansible-playbook", "ssh-keygen", "sudo")


def check_prerequisites() -> None:
    """Make sure every external tool the bootstrap shells out to is installed."""
    missing = [command for command in REQUIRED_COMMANDS if not command_exists(command)]
    if missing:
        fail(f"Required commands not found: {', '.join(missing)}")


def acquire_repositories(settings: BootstrapSettings, dry_run: bool = False) -> None:
    """Clone both ansible repos and check the server is known to them."""
    log_info("Acquiring ansible repositories...")

    from devenv.repos import clone_private_repo, verify_host_entries, clone_scripts_repo
    clone_private_repo(settings, dry_run=dry_run)
    verify_host_entries(settings, dry_run=dry_run)
    clone_scripts_repo(settings, dry_run=dry_run)


def apply_core_roles(settings: BootstrapSettings, dry_run: bool = False) -> None:
    """Assemble the workspace, run the core roles and install the inventory."""
    log_info(f"Applying core roles to {settings.server}...")

    from devenv.ansible import assemble_workspace, run_role, promote_inventory
    assemble_workspace(settings, dry_run=dry_run)
    for role in CORE_ROLES:
        run_role(settings, role, dry_run=dry_run)
    promote_inventory(settings, dry_run=dry_run)


def require_persistent_storage(settings: BootstrapSettings) -> None:
    """Everything past the core roles lives on the persistent disk."""
    if not settings.store.is_dir():
        fail(f"{settings.store} persistent storage does not exist")


def setup_ssh(settings: BootstrapSettings, dry_run: bool = False) -> None:
    """Create the ssh directory, client config and keys for github and gitlab."""
    log_info(f"Setting up ssh for {settings.user}...")

    from devenv.ansible import run_role
    from devenv.ssh import create_ssh_directory, write_ssh_config, generate_ssh_keys
    if create_ssh_directory(settings, dry_run=dry_run).created:
        # Bind mount the new directory over the user's ~/.ssh
        run_role(settings, DISK_ROLE, dry_run=dry_run)
    write_ssh_config(settings, dry_run=dry_run)
    generate_ssh_keys(settings, dry_run=dry_run)


def setup_persistent_checkouts(settings: BootstrapSettings, dry_run: bool = False) -> None:
    """Clone the long-lived working copies onto persistent storage."""
    log_info("Setting up persistent ansible checkouts...")

    from devenv.ansible import run_role
    from devenv.repos import create_persistent_directory, checkout_persistent_repos
    create_persistent_directory(settings, dry_run=dry_run)
    results = checkout_persistent_repos(settings, dry_run=dry_run)
    if any(result.created for result in results):
        # New checkouts need bind mounting into /etc/ansible
        run_role(settings, DISK_ROLE, dry_run=dry_run)


def reboot(dry_run: bool = False) -> None:
    log_info("Reboot required.")
    if dry_run:
        log_action("[DRY RUN] Would reboot")
        return

    log_action("Rebooting...")
    run("/sbin/shutdown", "-r", "now", label="Failed to reboot")


def bootstrap_system(settings: BootstrapSettings, dry_run: bool = False) -> None:
    """Main bootstrap workflow.

    Each step skips work that is already done, so re-running with the same
    arguments is the way to recover from a failure.
    """
    check_prerequisites()

    # Phase 1: Repositories
    acquire_repositories(settings, dry_run=dry_run)

    # Phase 2: Core roles
    apply_core_roles(settings, dry_run=dry_run)

    # Phase 3: First-run setup on persistent storage
    require_persistent_storage(settings)
    setup_ssh(settings, dry_run=dry_run)
    setup_persistent_checkouts(settings, dry_run=dry_run)

    # Phase 4: Cleanup and reboot
    from devenv.ansible import remove_workspace
    remove_workspace(settings, dry_run=dry_run)
    reboot(dry_run=dry_run)
