"""Short-term context harvested from commands the shell has executed."""

import shlex
from dataclasses import dataclass
from typing import Optional

ACCOUNT_FLAGS = ("--account", "--from", "--to")


@dataclass
class ShellContext:
    """Last account and asset seen in executed commands.

    Seeds each new conversation so users can leave them out.
    """

    last_account: Optional[str] = None
    last_asset: Optional[str] = None

    def update_from_command(self, command: str) -> None:
        """Update context from a command string such as 'tx buy BTC 0.1 --account "Binance"'."""
        try:
            args = shlex.split(command)
        except ValueError:
            args = command.split()

        for i, arg in enumerate(args[:-1]):
            if arg in ACCOUNT_FLAGS:
                self.last_account = args[i + 1].strip('"')

        position = self._asset_position(args)
        if position is not None:
            asset = args[position]
            if asset.isascii() and asset.isalpha() and asset.isupper() and 2 <= len(asset) <= 5:
                self.last_asset = asset

    @staticmethod
    def _asset_position(args: list[str]) -> Optional[int]:
        """Index of the asset positional for commands that take one."""
        if len(args) < 2:
            return None
        if args[0] in ("price", "market"):
            return 1
        if args[0] in ("tx", "holdings") and len(args) > 2:
            return 2
        return None

