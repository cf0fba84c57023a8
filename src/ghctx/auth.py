"""GitHub CLI authentication operations."""

import subprocess
from dataclasses import dataclass

API_TIMEOUT = 3.0
COMMAND_TIMEOUT = 15.0


@dataclass
class AuthResult:
    """Result of a gh command."""

    success: bool
    message: str
    return_code: int


def _run_gh(args: list[str], timeout: float = COMMAND_TIMEOUT) -> subprocess.CompletedProcess:
    """Run gh with the given arguments and capture its output.

    Raises:
        FileNotFoundError: If gh is not installed.
        subprocess.TimeoutExpired: If gh does not finish in time.
    """
    return subprocess.run(
        ["gh", *args],
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def _run_gh_result(args: list[str], action: str) -> AuthResult:
    try:
        result = _run_gh(args)
    except FileNotFoundError:
        return AuthResult(
            success=False,
            message="gh command not found. Please install the GitHub CLI.",
            return_code=1,
        )
    except subprocess.TimeoutExpired:
        return AuthResult(
            success=False,
            message=f"{action} timed out",
            return_code=1,
        )

    if result.returncode == 0:
        return AuthResult(success=True, message=f"{action} succeeded", return_code=0)

    error_msg = result.stderr.strip() or "Unknown error"
    return AuthResult(
        success=False,
        message=f"{action} failed: {error_msg}",
        return_code=result.returncode,
    )


def get_auth_status(hostname: str) -> str:
    """Return raw ``gh auth status`` output for a host.

    gh exits non-zero when not logged in but still explains why on
    stderr, so that is returned instead.
    """
    try:
        result = _run_gh(["auth", "status", "--hostname", hostname])
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        return str(e)

    if result.returncode != 0:
        return result.stderr
    # Older gh versions print the status to stderr even on success
    return result.stdout or result.stderr


def is_user_logged_in(hostname: str, user: str) -> bool:
    """Check if ``user`` has a login on ``hostname``."""
    try:
        result = _run_gh(["auth", "status", "--hostname", hostname])
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False

    if result.returncode != 0:
        return False

    expected = f"Logged in to {hostname} account {user}"
    return expected in result.stdout + result.stderr


def switch_user(hostname: str, user: str) -> AuthResult:
    """Switch gh to ``user`` on ``hostname``."""
    return _run_gh_result(
        ["auth", "switch", "--hostname", hostname, "--user", user],
        f"Switch to {user}@{hostname}",
    )


def set_git_protocol(hostname: str, transport: str) -> AuthResult:
    """Set gh's git protocol (ssh or https) for a host."""
    return _run_gh_result(
        ["config", "set", "git_protocol", transport, "--host", hostname],
        f"Setting git protocol to {transport}",
    )


def has_token(hostname: str) -> bool:
    """Check if gh holds an auth token for the host."""
    try:
        result = _run_gh(["auth", "token", "--hostname", hostname])
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0


def get_current_user(hostname: str) -> str | None:
    """Ask the API which login the active gh session belongs to.

    Returns:
        The login, or None if the call fails.
    """
    try:
        result = _run_gh(
            ["api", "user", "--hostname", hostname, "--jq", ".login"],
            timeout=API_TIMEOUT,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None

    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def verify_auth(hostname: str, user: str) -> bool:
    """Check that ``user`` is logged in, can be switched to, and is live.

    Note: this switches the active gh account as a side effect.
    """
    if not is_user_logged_in(hostname, user):
        return False

    if not switch_user(hostname, user).success:
        return False

    return get_current_user(hostname) == user
