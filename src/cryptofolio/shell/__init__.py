"""Interactive shell support: chat session driver and command context."""

from cryptofolio.shell.context import ShellContext
from cryptofolio.shell.session import ChatSession

__all__ = ["ChatSession", "ShellContext"]
