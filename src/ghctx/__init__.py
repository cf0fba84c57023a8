"""ghctx - switch between GitHub accounts and their SSH keys."""

__version__ = "0.1.0"
