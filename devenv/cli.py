"""CLI interface for the bootstrap tool."""
import typer
from . import utils
from . import steps
from .config import BootstrapSettings

USAGE = "Usage: devenv-bootstrap <servername> <apikey> <user>"


def bootstrap(
    server: str = typer.Argument(..., help="Inventory name of this server"),
    apikey: str = typer.Argument(..., help="API key for the private ansible repo"),
    user: str = typer.Argument(..., help="User that owns ssh keys and persistent checkouts"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview changes without applying them"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """Bootstrap this machine into a managed ansible configuration, then reboot."""
    utils.setup_logging(verbose)

    if not server or not apikey or not user:
        typer.echo(f"❗ {USAGE}")
        raise typer.Exit(1)

    if not dry_run and not utils.is_root():
        typer.echo("❗ Bootstrapping requires root. Run with sudo or use --dry-run")
        raise typer.Exit(1)

    settings = BootstrapSettings(server=server, apikey=apikey, user=user)
    try:
        steps.bootstrap_system(settings, dry_run)
    except utils.BootstrapError as e:
        typer.echo(f"❗ Error: {e}")
        raise typer.Exit(1)
    typer.echo("✅ Bootstrap complete!")


app = typer.Typer(
    name="devenv-bootstrap",
    help="Bootstrap a devenv machine into a managed ansible configuration.",
    add_completion=False,
)
app.command()(bootstrap)


if __name__ == "__main__":
    app()
