"""SSH identity setup on persistent storage."""
from typing import List

from devenv.config import BootstrapSettings, SSH_KEYS
from devenv.utils import (
    BootstrapError, EnsureResult, ensure_directory, log_action, log_info,
    run, wait_for_operator, write_file,
)


def create_ssh_directory(settings: BootstrapSettings, dry_run: bool = False) -> EnsureResult:
    """Create the user's ssh directory under /store.

    Its existence is what marks first-time setup as done.
    """
    return ensure_directory(settings.ssh_dir, settings.user, "700", dry_run=dry_run)


def render_ssh_config(settings: BootstrapSettings) -> str:
    """Client config mapping each remote host to its identity file."""
    ssh_home = settings.home / ".ssh"
    blocks = [f"Host {host}\n\tIdentityFile {ssh_home / key}" for host, key in SSH_KEYS]
    return "\n\n".join(blocks) + "\n"


def write_ssh_config(settings: BootstrapSettings, dry_run: bool = False) -> EnsureResult:
    config = settings.ssh_dir / "config"
    if config.is_file():
        log_info(f"{config} already exists.")
        return EnsureResult.PRESENT

    if dry_run:
        log_action(f"[DRY RUN] Would write ssh config to {config}")
        return EnsureResult.CREATED

    log_action(f"Writing ssh config to {config}...")
    write_file(config, render_ssh_config(settings), label="Failed to create ssh config")
    return EnsureResult.CREATED


def generate_ssh_key(settings: BootstrapSettings, host: str, key_name: str,
                     dry_run: bool = False) -> EnsureResult:
    """Generate a key pair for ``host`` and wait for it to be registered there."""
    key = settings.ssh_dir / key_name
    if key.is_file():
        log_info(f"{host} ssh key already exists.")
        return EnsureResult.PRESENT

    service = host.split(".")[0]
    if dry_run:
        log_action(f"[DRY RUN] Would generate {service} ssh key at {key}")
        return EnsureResult.CREATED

    log_action(f"Generating {service} ssh key...")
    run("ssh-keygen", "-q", "-t", "ed25519", "-f", str(key),
        label=f"Failed to generate {service} ssh key", _fg=True)

    try:
        public_key = key.with_name(f"{key_name}.pub").read_text()
    except OSError as e:
        raise BootstrapError(f"Failed to read {service} public key") from e

    log_info(f"Public key for {service}:")
    print(public_key.rstrip())
    print()
    wait_for_operator(f"In order to proceed, this key needs to be valid on {service}.")
    return EnsureResult.CREATED


def generate_ssh_keys(settings: BootstrapSettings, dry_run: bool = False) -> List[EnsureResult]:
    """Generate every missing key in SSH_KEYS, in order."""
    return [generate_ssh_key(settings, host, key_name, dry_run=dry_run) for host, key_name in SSH_KEYS]
