"""UI components for cryptofolio - Rich console, themes, and action rendering."""

from cryptofolio.ui.console import (
    console,
    print_error,
    print_success,
    print_warning,
    render_action,
    warn_ai_fallback,
)
from cryptofolio.ui.theme import PortfolioColors, Symbols, portfolio_theme

__all__ = [
    # Console basics
    "console",
    "print_error",
    "print_success",
    "print_warning",
    # Conversation
    "render_action",
    "warn_ai_fallback",
    # Theme
    "PortfolioColors",
    "portfolio_theme",
    "Symbols",
]
