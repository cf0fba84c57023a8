"""Context storage for ghctx."""

import json
import os
import subprocess
from dataclasses import asdict, dataclass
from pathlib import Path

from ghctx.errors import ContextNotFoundError

ACTIVE_FILE_NAME = "active"
REPO_BINDING_FILE = ".ghcontext"
TRANSPORTS = ("ssh", "https")


@dataclass
class Context:
    """A named GitHub identity."""

    name: str
    user: str
    hostname: str = "github.com"
    transport: str = "ssh"
    ssh_host: str | None = None  # Host alias in ~/.ssh/config
    ssh_key: str | None = None  # IdentityFile to activate for ssh_host

    @property
    def has_ssh_key(self) -> bool:
        return bool(self.ssh_host and self.ssh_key)


def _is_windows() -> bool:
    return os.name == "nt"


def config_dir() -> Path:
    """Return the directory holding saved contexts.

    Uses $XDG_CONFIG_HOME/gh/contexts, then %APPDATA%\\gh\\contexts on
    Windows, then ~/.config/gh/contexts. The shell hooks read the same paths.
    """
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "gh" / "contexts"
    appdata = os.environ.get("APPDATA")
    if _is_windows() and appdata:
        return Path(appdata) / "gh" / "contexts"
    return Path.home() / ".config" / "gh" / "contexts"


def ssh_config_path() -> Path:
    """Return the SSH config to edit ($GHCTX_SSH_CONFIG or ~/.ssh/config)."""
    override = os.environ.get("GHCTX_SSH_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".ssh" / "config"


def is_valid_context_name(name: str) -> bool:
    """Check if a context name is valid.

    Valid names contain only alphanumeric characters, dots, underscores
    and hyphens.
    """
    if not name or name.startswith("."):
        return False

    return all(c.isalnum() or c in "._-" for c in name)


def _context_file(name: str) -> Path:
    return config_dir() / f"{name}.json"


def load_context(name: str) -> Context:
    """Load a saved context.

    Args:
        name: Context name.

    Returns:
        The Context.

    Raises:
        ContextNotFoundError: If no readable context with that name exists.
    """
    path = _context_file(name)
    if not path.exists():
        raise ContextNotFoundError(name)

    try:
        with open(path, "r") as f:
            data = json.load(f)
        return Context(
            name=name,
            user=data["user"],
            hostname=data.get("hostname", "github.com"),
            transport=data.get("transport", "ssh"),
            ssh_host=data.get("ssh_host"),
            ssh_key=data.get("ssh_key"),
        )
    except (json.JSONDecodeError, KeyError, TypeError, OSError) as e:
        raise ContextNotFoundError(name) from e


def save_context(context: Context) -> None:
    """Save a context to disk, replacing any existing one."""
    config_dir().mkdir(parents=True, exist_ok=True)

    data = asdict(context)
    del data["name"]

    with open(_context_file(context.name), "w") as f:
        json.dump(data, f, indent=2)


def add_context(context: Context) -> bool:
    """Add a new context.

    Returns:
        True if added, False if a context with that name already exists.
    """
    if _context_file(context.name).exists():
        return False

    save_context(context)
    return True


def remove_context(name: str) -> bool:
    """Remove a context, clearing the active marker if it pointed at it.

    Returns:
        True if removed, False if the context doesn't exist.
    """
    path = _context_file(name)
    if not path.exists():
        return False

    path.unlink()
    if get_active_context() == name:
        clear_active_context()
    return True


def list_contexts() -> list[Context]:
    """List all saved contexts sorted by name. Unreadable files are skipped."""
    directory = config_dir()
    if not directory.exists():
        return []

    contexts = []
    for path in sorted(directory.glob("*.json")):
        try:
            contexts.append(load_context(path.stem))
        except ContextNotFoundError:
            continue
    return contexts


def get_active_context() -> str | None:
    """Get the name of the active context, or None if none is set."""
    path = config_dir() / ACTIVE_FILE_NAME
    if not path.exists():
        return None

    try:
        name = path.read_text().strip()
    except OSError:
        return None
    return name or None


def set_active_context(name: str) -> None:
    """Record ``name`` as the active context."""
    config_dir().mkdir(parents=True, exist_ok=True)
    (config_dir() / ACTIVE_FILE_NAME).write_text(name + "\n")


def clear_active_context() -> None:
    """Clear the active context marker."""
    path = config_dir() / ACTIVE_FILE_NAME
    if path.exists():
        path.unlink()


# Repository binding


def find_repo_root(start: Path | None = None) -> Path | None:
    """Return the top level of the git repository containing ``start``.

    Returns:
        The repository root, or None outside a repository or without git.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True,
            text=True,
            cwd=start,
        )
    except FileNotFoundError:
        return None

    if result.returncode != 0:
        return None
    return Path(result.stdout.strip())


def bind_repo(root: Path, name: str) -> Path:
    """Bind a repository to a context by writing its .ghcontext file."""
    path = root / REPO_BINDING_FILE
    path.write_text(name + "\n")
    return path


def unbind_repo(root: Path) -> bool:
    """Remove a repository's .ghcontext file.

    Returns:
        True if removed, False if the repository was not bound.
    """
    path = root / REPO_BINDING_FILE
    if not path.exists():
        return False

    path.unlink()
    return True


def get_repo_binding(root: Path) -> str | None:
    """Return the context name bound to a repository, or None."""
    path = root / REPO_BINDING_FILE
    if not path.exists():
        return None

    name = path.read_text().strip()
    return name or None
