"""Theme and color definitions for cryptofolio."""

from dataclasses import dataclass

from rich.theme import Theme


@dataclass(frozen=True)
class PortfolioColors:
    """Color palette for cryptofolio UI."""

    # Primary colors
    PRIMARY = "#61afef"
    SECONDARY = "#c678dd"

    # Status colors
    SUCCESS = "#98c379"
    WARNING = "#e5c07b"
    ERROR = "#e06c75"
    INFO = "#56b6c2"

    # Market specific
    ASSET = "#f7931a"
    PRICE = "#00d4aa"

    # UI elements
    MUTED = "#5c6370"
    BORDER = "#3e4451"
    HIGHLIGHT = "#e5c07b"


# Rich theme for console styling
portfolio_theme = Theme(
    {
        # Primary styles
        "primary": f"bold {PortfolioColors.PRIMARY}",
        "secondary": f"{PortfolioColors.SECONDARY}",
        # Status styles
        "success": f"bold {PortfolioColors.SUCCESS}",
        "warning": f"bold {PortfolioColors.WARNING}",
        "error": f"bold {PortfolioColors.ERROR}",
        "info": f"{PortfolioColors.INFO}",
        # Portfolio styles
        "asset": f"bold {PortfolioColors.ASSET}",
        "price": f"bold {PortfolioColors.PRICE}",
        "account": f"{PortfolioColors.PRIMARY}",
        # UI styles
        "muted": f"{PortfolioColors.MUTED}",
        "highlight": f"bold {PortfolioColors.HIGHLIGHT}",
        "prompt": f"bold {PortfolioColors.PRIMARY}",
        "command": f"bold {PortfolioColors.SUCCESS}",
        # Table styles
        "table.header": f"bold {PortfolioColors.PRIMARY}",
        "table.border": f"{PortfolioColors.BORDER}",
    }
)


# Unicode symbols used in the UI
class Symbols:
    """Unicode symbols for UI elements."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    BULLET = "•"
    WARN = "⚠"
    INFO = "ℹ"
    QUESTION = "?"
    NEXT = "➜"
