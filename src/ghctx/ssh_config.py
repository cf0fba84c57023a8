"""SSH config parser and editor for switching IdentityFile keys per host."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from ghctx.errors import HostNotFoundError, IdentityFileNotFoundError, SSHConfigIOError

# "Host <pattern>" lines. HostName does not match since whitespace must follow.
HOST_PATTERN = re.compile(r"^\s*Host\s+(.+?)\s*$", re.IGNORECASE)

# "IdentityFile <path>" lines, commented or not.
IDENTITY_FILE_PATTERN = re.compile(
    r"^\s*(#\s*)?IdentityFile\s+(.+?)\s*$", re.IGNORECASE
)

DEFAULT_INDENT = "    "
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


@dataclass(frozen=True)
class HostDecl:
    """A ``Host <pattern>`` line."""

    pattern: str


@dataclass(frozen=True)
class IdentityFileDecl:
    """An ``IdentityFile <path>`` line, possibly commented out."""

    path: str
    commented: bool


@dataclass(frozen=True)
class Opaque:
    """Any other line, kept verbatim."""

    text: str


LineKind = HostDecl | IdentityFileDecl | Opaque


@dataclass
class IdentityFileEntry:
    """An IdentityFile declaration inside a host block."""

    index: int  # relative to the block start
    path: str
    commented: bool
    raw: str


@dataclass
class HostBlock:
    """A ``Host`` line and every line up to the next one."""

    start: int
    end: int
    pattern: str
    lines: list[str] = field(default_factory=list)
    identity_files: list[IdentityFileEntry] = field(default_factory=list)

    @property
    def active_identity_file(self) -> str:
        """Return the first uncommented IdentityFile path, or an empty string."""
        for entry in self.identity_files:
            if not entry.commented:
                return entry.path
        return ""


def classify_line(line: str) -> LineKind:
    """Classify a single raw config line.

    Args:
        line: One line of the config file, without its newline.

    Returns:
        HostDecl, IdentityFileDecl or Opaque. Never raises.
    """
    match = HOST_PATTERN.match(line)
    if match:
        return HostDecl(pattern=match.group(1).strip())

    match = IDENTITY_FILE_PATTERN.match(line)
    if match:
        return IdentityFileDecl(
            path=match.group(2).strip(),
            commented=match.group(1) is not None,
        )

    return Opaque(text=line)


def parse_blocks(lines: list[str]) -> list[HostBlock]:
    """Group config lines into host blocks.

    Lines before the first ``Host`` declaration belong to no block.

    Args:
        lines: Every line of the config file, in order.

    Returns:
        Host blocks in file order.
    """
    blocks: list[HostBlock] = []
    current: HostBlock | None = None

    for i, line in enumerate(lines):
        kind = classify_line(line)

        if isinstance(kind, HostDecl):
            if current is not None:
                current.end = i
                blocks.append(current)
            current = HostBlock(start=i, end=i, pattern=kind.pattern)

        if current is None:
            continue

        current.lines.append(line)
        if isinstance(kind, IdentityFileDecl):
            current.identity_files.append(
                IdentityFileEntry(
                    index=len(current.lines) - 1,
                    path=kind.path,
                    commented=kind.commented,
                    raw=line,
                )
            )

    if current is not None:
        current.end = len(lines)
        blocks.append(current)

    return blocks


def default_config_path() -> Path:
    """Return the default SSH client config path (~/.ssh/config)."""
    return Path.home() / ".ssh" / "config"


def expand_path(path: str) -> str:
    """Expand a leading ``~/`` to the home directory."""
    if path.startswith("~/"):
        return str(Path.home() / path[2:])
    return path


def normalize_path(path: str) -> str:
    """Normalize a key path for comparison only, never for storage."""
    return os.path.normpath(expand_path(path))


def key_exists(path: str) -> bool:
    """Check whether a key file exists on disk."""
    return Path(expand_path(path)).exists()


def _leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]


def _comment_identity_file(line: str) -> str:
    kind = classify_line(line)
    if not isinstance(kind, IdentityFileDecl) or kind.commented:
        return line
    return f"{_leading_whitespace(line)}# IdentityFile {kind.path}"


def _uncomment_identity_file(line: str) -> str:
    kind = classify_line(line)
    if not isinstance(kind, IdentityFileDecl):
        return line
    return f"{_leading_whitespace(line)}IdentityFile {kind.path}"


def _detect_indent(block_lines: list[str]) -> str:
    for line in block_lines[1:]:
        stripped = line.lstrip(" \t")
        if stripped and stripped != line:
            return line[: len(line) - len(stripped)]
    return DEFAULT_INDENT


class ConfigFile:
    """An SSH config file held in memory as raw lines.

    ``blocks`` is always rebuilt from ``lines`` after an edit, so the two
    never disagree.
    """

    def __init__(self, path: Path, lines: list[str] | None = None):
        self.path = Path(path)
        self.lines: list[str] = list(lines) if lines else []
        # Trailing blank lines are not kept; the file ends with one newline.
        while self.lines and self.lines[-1] == "":
            self.lines.pop()
        self.blocks: list[HostBlock] = []
        self._reparse()

    @classmethod
    def load(cls, path: Path | str | None = None) -> "ConfigFile":
        """Read and parse an SSH config file.

        A missing file is treated as an empty config.

        Args:
            path: Path to the config. Defaults to ~/.ssh/config.

        Returns:
            The parsed ConfigFile.

        Raises:
            SSHConfigIOError: If the file exists but cannot be read.
        """
        config_path = Path(path) if path else default_config_path()

        try:
            content = config_path.read_text(encoding=ENCODING, errors=ENCODING_ERRORS)
        except FileNotFoundError:
            return cls(config_path)
        except OSError as e:
            raise SSHConfigIOError(
                f"Failed to read SSH config {config_path}: {e}"
            ) from e

        lines = content.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return cls(config_path, [line.rstrip("\r") for line in lines])

    def _reparse(self) -> None:
        self.blocks = parse_blocks(self.lines)

    def find_host_block(self, alias: str) -> HostBlock | None:
        """Find a host block whose pattern text equals ``alias`` exactly.

        This is literal text comparison: ``Host *.corp`` is only found by
        the alias ``*.corp``.
        """
        for block in self.blocks:
            if block.pattern == alias:
                return block
        return None

    def get_active_identity_file(self, alias: str) -> str:
        """Return the active IdentityFile path for a host, or ""."""
        block = self.find_host_block(alias)
        if block is None:
            return ""
        return block.active_identity_file

    def activate_key(self, alias: str, key_path: str) -> None:
        """Make ``key_path`` the only uncommented IdentityFile for ``alias``.

        The first matching line is uncommented, every other IdentityFile
        line in the block is commented out, later duplicates of the same
        key included. Indentation and the path text as
        written in the file are preserved.

        Args:
            alias: Host pattern text of the block.
            key_path: Key to activate. Compared after normalization.

        Raises:
            HostNotFoundError: No block for ``alias``.
            IdentityFileNotFoundError: The block has no entry for ``key_path``.
        """
        block = self.find_host_block(alias)
        if block is None:
            raise HostNotFoundError(alias)

        wanted = normalize_path(key_path)
        if not any(normalize_path(e.path) == wanted for e in block.identity_files):
            raise IdentityFileNotFoundError(alias, key_path)

        activated = False
        for entry in block.identity_files:
            idx = block.start + entry.index
            # Duplicates of the key are commented out like any other entry
            if not activated and normalize_path(entry.path) == wanted:
                self.lines[idx] = _uncomment_identity_file(self.lines[idx])
                activated = True
            else:
                self.lines[idx] = _comment_identity_file(self.lines[idx])

        self._reparse()

    def add_identity_file(self, alias: str, key_path: str, active: bool = False) -> bool:
        """Add an IdentityFile line to a host block unless already present.

        Args:
            alias: Host pattern text of the block.
            key_path: Key path, written to the file as given.
            active: Write the line uncommented when True.

        Returns:
            True if a line was inserted, False if the key was already listed.

        Raises:
            HostNotFoundError: No block for ``alias``.
        """
        block = self.find_host_block(alias)
        if block is None:
            raise HostNotFoundError(alias)

        wanted = normalize_path(key_path)
        for entry in block.identity_files:
            if normalize_path(entry.path) == wanted:
                return False

        indent = _detect_indent(block.lines)
        prefix = "" if active else "# "
        new_line = f"{indent}{prefix}IdentityFile {key_path}"

        if block.identity_files:
            insert_at = block.start + block.identity_files[-1].index + 1
        else:
            insert_at = block.start + 1

        self.lines.insert(insert_at, new_line)
        self._reparse()
        return True

    def render(self) -> str:
        """Serialize the lines with exactly one trailing newline."""
        content = "\n".join(self.lines).rstrip("\n")
        if not content:
            return ""
        return content + "\n"

    def save(self) -> None:
        """Write the config to disk, backing up the current file first.

        The on-disk file (not the in-memory state) is copied to
        ``<path>.bak``, replacing any earlier backup. The write is not
        atomic.

        Raises:
            SSHConfigIOError: If the backup or the write fails.
        """
        backup_path = self.path.with_name(self.path.name + ".bak")

        if self.path.exists():
            try:
                data = self.path.read_bytes()
            except OSError as e:
                raise SSHConfigIOError(f"Failed to read config for backup: {e}") from e
            try:
                _write_private(backup_path, data)
            except OSError as e:
                raise SSHConfigIOError(f"Failed to create backup: {e}") from e

        try:
            _write_private(self.path, self.render().encode(ENCODING, ENCODING_ERRORS))
        except OSError as e:
            raise SSHConfigIOError(f"Failed to write SSH config: {e}") from e


def _write_private(path: Path, data: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
