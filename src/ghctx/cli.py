"""CLI commands for ghctx."""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ghctx import __version__
from ghctx.auth import get_auth_status, is_user_logged_in, set_git_protocol, switch_user
from ghctx.config import (
    TRANSPORTS,
    Context,
    add_context,
    bind_repo,
    find_repo_root,
    get_active_context,
    get_repo_binding,
    is_valid_context_name,
    list_contexts,
    load_context,
    remove_context,
    set_active_context,
    ssh_config_path,
    unbind_repo,
)
from ghctx.errors import GhctxError
from ghctx.shell_hook import SUPPORTED_SHELLS, render_hook
from ghctx.ssh_config import ConfigFile, key_exists

app = typer.Typer(
    name="ghctx",
    help="A kubectx-style context switcher for the GitHub CLI.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool):
    if value:
        console.print(f"[bold cyan]ghctx[/bold cyan] version {__version__}")
        raise typer.Exit()


def fail(message: str) -> typer.Exit:
    """Print an error line and return the Exit to raise."""
    err_console.print(f"[bold red]✗[/bold red] {message}")
    return typer.Exit(1)


def ok(message: str) -> None:
    console.print(f"[bold green]✓[/bold green] {message}")


def info(message: str) -> None:
    console.print(f"[cyan]•[/cyan] {message}")


def _require_repo_root() -> Path:
    root = find_repo_root(Path.cwd())
    if root is None:
        raise fail("Not inside a git repository.")
    return root


def _activate_ssh_key(context: Context) -> None:
    """Make the context's key the only active IdentityFile for its SSH alias."""
    if not key_exists(context.ssh_key):
        raise fail(f"SSH key not found: {context.ssh_key}")

    ssh_config = ConfigFile.load(ssh_config_path())
    ssh_config.activate_key(context.ssh_host, context.ssh_key)
    ssh_config.save()
    ok(f"Activated [green]{context.ssh_key}[/green] for Host [cyan]{context.ssh_host}[/cyan]")


def _use_context(name: str) -> None:
    context = load_context(name)

    if not is_user_logged_in(context.hostname, context.user):
        raise fail(
            f"{context.user} is not logged in on {context.hostname}. "
            f"Run: gh auth login --hostname {context.hostname}"
        )

    result = switch_user(context.hostname, context.user)
    if not result.success:
        raise fail(result.message)
    ok(f"Switched gh to [cyan]{context.user}[/cyan]@{context.hostname}")

    result = set_git_protocol(context.hostname, context.transport)
    if not result.success:
        raise fail(result.message)

    if context.has_ssh_key:
        _activate_ssh_key(context)

    set_active_context(context.name)
    ok(f"Active context: [bold cyan]{context.name}[/bold cyan]")


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """A kubectx-style context switcher for the GitHub CLI."""
    pass


@app.command("list")
def list_cmd():
    """List saved contexts."""
    contexts = list_contexts()

    if not contexts:
        console.print(
            Panel(
                "[yellow]No contexts saved[/yellow]\n\n"
                "Create one with [bold cyan]ghctx new <name> --user <login>[/bold cyan]",
                title="Contexts",
                border_style="yellow",
            )
        )
        return

    active = get_active_context()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("", width=1)
    table.add_column("Name", style="cyan")
    table.add_column("User")
    table.add_column("Host")
    table.add_column("Transport", style="dim")
    table.add_column("SSH", style="dim")

    for ctx in contexts:
        ssh = f"{ctx.ssh_host} → {ctx.ssh_key}" if ctx.has_ssh_key else "-"
        table.add_row(
            "*" if ctx.name == active else "",
            ctx.name,
            ctx.user,
            ctx.hostname,
            ctx.transport,
            ssh,
        )

    console.print(table)


@app.command()
def current():
    """Show the active context."""
    name = get_active_context()
    if name is None:
        console.print(
            Panel(
                "[yellow]No active context[/yellow]\n\n"
                "Run [bold cyan]ghctx use <name>[/bold cyan] to activate one.",
                title="Context Status",
                border_style="yellow",
            )
        )
        raise typer.Exit(1)

    try:
        context = load_context(name)
        active_key = ""
        if context.ssh_host:
            ssh_config = ConfigFile.load(ssh_config_path())
            active_key = ssh_config.get_active_identity_file(context.ssh_host)
    except GhctxError as e:
        raise fail(str(e))

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Context", context.name)
    table.add_row("User", context.user)
    table.add_row("Host", context.hostname)
    table.add_row("Transport", context.transport)
    if context.ssh_host:
        table.add_row("SSH Host", context.ssh_host)
        table.add_row("Identity", active_key or "[yellow]none active[/yellow]")

    console.print(
        Panel(
            table,
            title="[bold green]Current Context[/bold green]",
            border_style="green",
        )
    )


@app.command()
def new(
    name: str = typer.Argument(..., help="Context name (alphanumeric, ., _, -)"),
    user: str = typer.Option(..., "--user", "-u", help="GitHub login"),
    hostname: str = typer.Option("github.com", "--hostname", "-H", help="GitHub host"),
    transport: str = typer.Option("ssh", "--transport", "-t", help="Git protocol: ssh or https"),
    ssh_host: str = typer.Option(None, "--ssh-host", help="Host alias in your SSH config"),
    ssh_key: str = typer.Option(None, "--ssh-key", help="IdentityFile to activate for the alias"),
    add_key: bool = typer.Option(
        False, "--add-key", help="Add the key to the alias's Host block if missing"
    ),
):
    """Create a new context."""
    if not is_valid_context_name(name):
        raise fail(
            "Invalid context name. "
            "Use only alphanumeric characters, dots, underscores, and hyphens."
        )

    if transport not in TRANSPORTS:
        raise fail(f"Invalid transport: {transport} (valid: {', '.join(TRANSPORTS)})")

    if bool(ssh_host) != bool(ssh_key):
        raise fail("--ssh-host and --ssh-key must be given together.")

    context = Context(
        name=name,
        user=user,
        hostname=hostname,
        transport=transport,
        ssh_host=ssh_host,
        ssh_key=ssh_key,
    )

    ssh_config = None
    if add_key and context.has_ssh_key:
        try:
            ssh_config = ConfigFile.load(ssh_config_path())
        except GhctxError as e:
            raise fail(str(e))
        if ssh_config.find_host_block(ssh_host) is None:
            raise fail(f"No Host block found for '{ssh_host}' in {ssh_config.path}")

    if not add_context(context):
        raise fail(f"Context '{name}' already exists. Delete it first or pick another name.")

    if ssh_config is not None:
        try:
            if ssh_config.add_identity_file(ssh_host, ssh_key, active=False):
                ssh_config.save()
                info(f"Added IdentityFile {ssh_key} to Host {ssh_host}")
        except GhctxError as e:
            remove_context(name)
            raise fail(str(e))

    ok(f"Created context [cyan]{name}[/cyan] ({user}@{hostname})")


@app.command()
def use(name: str = typer.Argument(..., help="Context to activate")):
    """Switch gh account and SSH key to a context."""
    try:
        _use_context(name)
    except GhctxError as e:
        raise fail(str(e))


@app.command()
def delete(name: str = typer.Argument(..., help="Context to delete")):
    """Delete a context."""
    if remove_context(name):
        ok(f"Deleted context [cyan]{name}[/cyan]")
    else:
        raise fail(f"Context '{name}' not found.")


@app.command()
def bind(name: str = typer.Argument(..., help="Context to bind to this repository")):
    """Bind the current repository to a context via .ghcontext."""
    try:
        load_context(name)
    except GhctxError as e:
        raise fail(str(e))

    root = _require_repo_root()
    path = bind_repo(root, name)
    ok(f"Bound [cyan]{root}[/cyan] to context [cyan]{name}[/cyan] ({path.name})")


@app.command()
def unbind():
    """Remove the current repository's context binding."""
    root = _require_repo_root()
    if unbind_repo(root):
        ok(f"Unbound [cyan]{root}[/cyan]")
    else:
        info("Repository is not bound to a context.")


@app.command()
def apply():
    """Activate the context bound to the current repository."""
    root = _require_repo_root()
    name = get_repo_binding(root)
    if name is None:
        raise fail("No .ghcontext file in this repository. Run: ghctx bind <name>")

    info(f"Applying context [cyan]{name}[/cyan] from .ghcontext")
    try:
        _use_context(name)
    except GhctxError as e:
        raise fail(str(e))


@app.command("shell-hook")
def shell_hook(
    shell: str = typer.Argument("bash", help=f"One of: {', '.join(SUPPORTED_SHELLS)}"),
):
    """Print shell code that auto-applies a repository's context on cd."""
    try:
        hook = render_hook(shell)
    except GhctxError as e:
        raise fail(str(e))

    typer.echo(hook, nl=False)


@app.command("auth-status")
def auth_status(
    name: str = typer.Argument(None, help="Context to check (default: all)"),
):
    """Check whether each context's user is logged in to gh."""
    try:
        contexts = [load_context(name)] if name else list_contexts()
    except GhctxError as e:
        raise fail(str(e))

    if not contexts:
        info("No contexts saved.")
        return

    all_ok = True
    for ctx in contexts:
        if is_user_logged_in(ctx.hostname, ctx.user):
            ok(f"{ctx.name}: {ctx.user}@{ctx.hostname} logged in")
        else:
            all_ok = False
            err_console.print(
                f"[bold red]✗[/bold red] {ctx.name}: {ctx.user}@{ctx.hostname} not logged in"
            )
            if name:
                console.print(get_auth_status(ctx.hostname).strip(), style="dim", markup=False)

    if not all_ok:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
