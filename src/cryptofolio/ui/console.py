"""Rich console setup and output helpers for cryptofolio."""

from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cryptofolio.ai.actions import (
    Action,
    Cancel,
    Clarify,
    Confirm,
    Disambiguate,
    Execute,
    OutOfScope,
    Respond,
)
from cryptofolio.ui.theme import PortfolioColors, Symbols, portfolio_theme

# Main console instance with cryptofolio theme
console = Console(theme=portfolio_theme)

# JSON output console (no styling)
json_console = Console(force_terminal=False, no_color=True)


def print_error(message: str, title: str = "Error") -> None:
    """Print an error message in a styled panel."""
    console.print(
        Panel(
            f"[error]{Symbols.CROSS} {message}[/error]",
            title=f"[error]{title}[/error]",
            border_style=PortfolioColors.ERROR,
            box=box.ROUNDED,
        )
    )


def print_success(message: str, title: str = "Success") -> None:
    """Print a success message in a styled panel."""
    console.print(
        Panel(
            f"[success]{Symbols.CHECK} {message}[/success]",
            title=f"[success]{title}[/success]",
            border_style=PortfolioColors.SUCCESS,
            box=box.ROUNDED,
        )
    )


def print_warning(message: str, title: str = "Warning") -> None:
    """Print a warning message in a styled panel."""
    console.print(
        Panel(
            f"[warning]{Symbols.WARN} {message}[/warning]",
            title=f"[warning]{title}[/warning]",
            border_style=PortfolioColors.WARNING,
            box=box.ROUNDED,
        )
    )


def print_welcome() -> None:
    """Print the chat welcome banner."""
    banner = (
        "[asset]cryptofolio[/asset] [muted]chat[/muted]\n\n"
        "[muted]Describe what you did or want to see, e.g.[/muted]\n"
        '  [command]"I bought 0.1 btc at 95000 on Binance"[/command]\n'
        '  [command]"what\'s the price of bitcoin"[/command]'
    )
    console.print(Panel(banner, border_style=PortfolioColors.ASSET, box=box.ROUNDED))


def create_table(title: str, columns: list[tuple[str, str]]) -> Table:
    """Create a styled table with the given columns.

    Args:
        title: Table title
        columns: List of (name, style) tuples for columns

    Returns:
        Configured Rich Table instance
    """
    table = Table(
        title=f"[primary]{title}[/primary]",
        box=box.ROUNDED,
        border_style=PortfolioColors.BORDER,
        header_style="table.header",
        show_lines=False,
    )
    for name, style in columns:
        table.add_column(name, style=style)
    return table


# =============================================================================
# Conversation Rendering
# =============================================================================


def print_confirmation(action: Confirm) -> None:
    """Print a confirmation summary.

    Example:
    ┌ Transaction: BUY ─────────────┐
    │ Asset:    BTC                 │
    │ Quantity: 0.1                 │
    │ Price:    $95000.00           │
    │ Account:  Binance             │
    │ Total:    $9500.00            │
    └───────────────────────────────┘
    """
    width = max((len(label) for label, _ in action.details), default=0)
    lines = [
        f"[muted]{label.ljust(width)}:[/muted] [highlight]{value}[/highlight]"
        for label, value in action.details
    ]
    lines.append("")
    lines.append(f"[muted]{Symbols.ARROW}[/muted] [command]{action.command}[/command]")

    console.print(
        Panel(
            "\n".join(lines),
            title=f"[primary]{action.summary}[/primary]",
            title_align="left",
            border_style=PortfolioColors.PRIMARY,
            box=box.ROUNDED,
            padding=(0, 1),
        )
    )
    console.print("[prompt]Confirm? (y/n)[/prompt]")


def render_action(action: Action) -> None:
    """Print an action returned by the conversation manager."""
    if isinstance(action, Clarify):
        console.print(f"[info]{Symbols.QUESTION}[/info] {action.question}")
        if action.suggestions:
            console.print(f"  [muted]e.g. {', '.join(action.suggestions)}[/muted]")
    elif isinstance(action, Confirm):
        print_confirmation(action)
    elif isinstance(action, Execute):
        console.print(f"[success]{Symbols.NEXT}[/success] [command]{action.command}[/command]")
    elif isinstance(action, Cancel):
        console.print(f"[muted]{action.message}[/muted]")
    elif isinstance(action, Disambiguate):
        console.print(action.message)
        for option in action.options:
            console.print(f"  [primary]{Symbols.BULLET}[/primary] {option}")
    elif isinstance(action, Respond):
        console.print(action.message)
    elif isinstance(action, OutOfScope):
        console.print(f"[warning]{action.message}[/warning]")


def warn_ai_fallback(reason: str, already_warned: bool) -> bool:
    """Tell the user once per session that pattern-based parsing is in use.

    Args:
        reason: Why the model could not be used
        already_warned: Whether this session has already shown the notice

    Returns:
        The new value of the session's warned flag (always True)
    """
    if not already_warned:
        console.print(
            f"[warning]{Symbols.WARN} Using pattern-based parsing (LLM unavailable)[/warning]"
        )
        console.print(f"  [muted]{reason}[/muted]")
    return True


def print_provider_status(mode: str, active: str, statuses: list) -> None:
    """Print the AI provider status table.

    Args:
        mode: Configured operating mode
        active: Label of the provider used for simple requests
        statuses: ProviderStatus entries
    """
    table = create_table(
        "AI Providers",
        [("Provider", "primary"), ("Model", "muted"), ("Status", ""), ("Details", "muted")],
    )
    for status in statuses:
        if status.available:
            state = f"[success]{Symbols.CHECK} ready[/success]"
        elif status.configured:
            state = f"[warning]{Symbols.WARN} unreachable[/warning]"
        else:
            state = f"[muted]{Symbols.CROSS} not configured[/muted]"
        table.add_row(status.name, status.model or "-", state, status.reason or "")

    console.print(table)
    console.print(f"[muted]Mode:[/muted] [info]{mode}[/info]  [muted]Active:[/muted] {active}")


def format_context(last_account: Optional[str], last_asset: Optional[str]) -> Optional[str]:
    """One-line description of the remembered account and asset."""
    parts = []
    if last_account:
        parts.append(f"[muted]account:[/muted] [account]{last_account}[/account]")
    if last_asset:
        parts.append(f"[muted]asset:[/muted] [asset]{last_asset}[/asset]")
    return "   ".join(parts) if parts else None
