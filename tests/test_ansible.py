"""Tests for the ansible workspace and role execution."""
import sys

import pytest
from unittest.mock import patch

from devenv.ansible import assemble_workspace, run_role, promote_inventory, remove_workspace
from devenv.config import BootstrapSettings
from devenv.utils import BootstrapError


@pytest.fixture
def settings(tmp_path):
    settings = BootstrapSettings(server="web01", apikey="secret", user="alice", root=tmp_path)
    settings.inventory_file.parent.mkdir(parents=True)
    settings.inventory_file.write_text("[devenv]\nweb01 ansible_host=10.0.0.1\n")
    settings.host_vars_dir.mkdir(parents=True)
    (settings.scripts_checkout / "scripts").mkdir(parents=True)
    (settings.scripts_checkout / "roles").mkdir(parents=True)
    return settings


class TestAssembleWorkspace:
    """Tests for the scratch symlink workspace."""

    def test_links_point_into_checkouts(self, settings):
        assemble_workspace(settings)

        workspace = settings.workspace
        assert (workspace / "hosts").resolve() == settings.inventory_file.resolve()
        assert (workspace / "host_vars").resolve() == (settings.private_checkout / "host_vars").resolve()
        assert (workspace / "playbooks").resolve() == (settings.scripts_checkout / "scripts").resolve()
        assert (workspace / "playbooks" / "roles").resolve() == (settings.scripts_checkout / "roles").resolve()
        # The roles link lives in the scripts checkout itself
        assert (settings.scripts_checkout / "scripts" / "roles").is_symlink()

    def test_rerun_is_idempotent(self, settings):
        assemble_workspace(settings)
        assemble_workspace(settings)

        assert (settings.workspace / "hosts").is_symlink()

    def test_roles_directory_in_scripts_is_kept(self, settings):
        """Test a real roles directory inside the scripts tree is used as-is."""
        (settings.scripts_checkout / "scripts" / "roles").mkdir()

        assemble_workspace(settings)

        roles = settings.scripts_checkout / "scripts" / "roles"
        assert roles.is_dir()
        assert not roles.is_symlink()

    def test_dry_run_creates_nothing(self, settings):
        assemble_workspace(settings, dry_run=True)

        assert not settings.workspace.exists()


class TestRunRole:
    """Tests for role-runner invocation."""

    @patch('devenv.ansible.run')
    def test_run_role_from_workspace(self, mock_run, settings):
        run_role(settings, "core_network")

        mock_run.assert_called_once_with(
            "ansible-playbook", "-i", "hosts", "playbooks/role-runner.yml",
            "-e", "host=web01", "-e", "role=core_network",
            label="Failed to run role core_network",
            _cwd=str(settings.workspace),
            _out=sys.stdout,
            _err=sys.stderr,
        )

    @patch('devenv.ansible.run')
    def test_run_role_dry_run(self, mock_run, settings, capsys):
        run_role(settings, "core_sudo", dry_run=True)

        mock_run.assert_not_called()
        assert "[DRY RUN] Would run role core_sudo" in capsys.readouterr().out

    @patch('devenv.ansible.run')
    def test_role_failure_propagates(self, mock_run, settings):
        mock_run.side_effect = BootstrapError("Failed to run role core_users")

        with pytest.raises(BootstrapError, match="core_users"):
            run_role(settings, "core_users")


class TestPromoteInventory:
    """Tests for installing the system-wide inventory."""

    def test_copies_inventory(self, settings):
        promote_inventory(settings)

        assert settings.system_inventory.read_text() == settings.inventory_file.read_text()
        assert not settings.system_inventory.is_symlink()

    def test_overwrites_existing_inventory(self, settings):
        settings.system_inventory.parent.mkdir(parents=True)
        settings.system_inventory.write_text("stale\n")

        promote_inventory(settings)

        assert "web01" in settings.system_inventory.read_text()

    def test_dry_run_copies_nothing(self, settings):
        promote_inventory(settings, dry_run=True)

        assert not settings.system_inventory.exists()


class TestRemoveWorkspace:
    """Tests for workspace cleanup."""

    def test_removes_workspace_but_keeps_checkouts(self, settings):
        assemble_workspace(settings)

        remove_workspace(settings)

        assert not settings.workspace.exists()
        assert settings.inventory_file.is_file()
        assert (settings.scripts_checkout / "roles").is_dir()

    def test_missing_workspace_is_fine(self, settings):
        remove_workspace(settings)

        assert not settings.workspace.exists()

    def test_dry_run_keeps_workspace(self, settings):
        assemble_workspace(settings)

        remove_workspace(settings, dry_run=True)

        assert settings.workspace.is_dir()
