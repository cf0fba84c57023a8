"""Exceptions raised by ghctx."""


class GhctxError(Exception):
    """Base class for ghctx errors."""


class NotFoundError(GhctxError):
    """A requested host, key or context does not exist."""


class HostNotFoundError(NotFoundError):
    """No Host block matches the requested alias."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"No Host block found for '{alias}' in SSH config")


class IdentityFileNotFoundError(NotFoundError):
    """The Host block has no IdentityFile line for the requested key."""

    def __init__(self, alias: str, key_path: str):
        self.alias = alias
        self.key_path = key_path
        super().__init__(
            f"IdentityFile '{key_path}' not found in Host {alias} block. "
            "Add it to your SSH config first."
        )


class ContextNotFoundError(NotFoundError):
    """No saved context has the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Context '{name}' not found")


class SSHConfigIOError(GhctxError):
    """Reading, backing up or writing the SSH config failed."""


class UnsupportedShellError(GhctxError):
    """No shell hook exists for the requested shell."""
