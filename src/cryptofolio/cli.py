"""Main CLI entry point for cryptofolio."""

import json
import logging
from typing import Optional

import typer
from rich.logging import RichHandler

from cryptofolio import __app_name__, __version__
from cryptofolio.ai.conversation import DialoguePhase
from cryptofolio.ai.intents import Entity, EntityKind
from cryptofolio.ai.router import AiService
from cryptofolio.ai.synthesizer import synthesize
from cryptofolio.config.settings import create_default_config, get_settings
from cryptofolio.security.credentials import CredentialManager, setup_secure_logging
from cryptofolio.shell.context import ShellContext
from cryptofolio.shell.session import ChatSession
from cryptofolio.ui.console import (
    console,
    format_context,
    json_console,
    print_error,
    print_provider_status,
    print_success,
    print_warning,
    print_welcome,
    render_action,
)
from cryptofolio.ui.theme import Symbols
from cryptofolio.utils.errors import handle_errors

# Create Typer app
app = typer.Typer(
    name=__app_name__,
    help="Conversational front end for the cryptofolio portfolio tracker",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

QUIT_WORDS = ("quit", "exit", "q")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"[primary]{__app_name__}[/primary] version [asset]{__version__}[/asset]")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
):
    """cryptofolio - talk to your portfolio in plain English."""
    # Create default config if needed
    create_default_config()

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        )

    # Setup secure logging
    setup_secure_logging()


def print_command(command: str) -> None:
    """Default executor: show the command that would run against the ledger."""
    console.print(f"[muted]Running:[/muted] [command]cryptofolio {command}[/command]")


@app.command()
def chat(
    message: Optional[str] = typer.Argument(None, help="Initial message (optional)"),
    account: Optional[str] = typer.Option(
        None, "--account", "-a", help="Account to assume when none is mentioned"
    ),
):
    """Start interactive chat mode.

    Describe transactions in plain English; cryptofolio asks for anything
    missing and confirms before changing your portfolio.

    [green]Examples:[/green]
        cryptofolio chat
        cryptofolio chat "I bought 0.1 btc at 95000 on Binance"
    """
    settings = get_settings()
    service = AiService.from_settings(settings)
    context = ShellContext(last_account=account or settings.default_account)
    session = ChatSession(service, executor=print_command, context=context)

    print_welcome()
    for name, reason in service.unconfigured.items():
        print_warning(f"{name}: {reason}", title="AI provider")
    console.print(f"[muted]AI: {service.active_label}[/muted]")
    context_line = format_context(context.last_account, context.last_asset)
    if context_line:
        console.print(context_line)
    console.print("[muted]Type 'help' for examples, 'quit' to exit[/muted]\n")

    def respond(line: str) -> None:
        action = session.handle_line(line)
        result = session.last_result
        if settings.ui.show_confidence and result is not None:
            console.print(f"[muted]{result.intent.value} ({result.confidence:.0%})[/muted]")
        render_action(action)

    if message:
        respond(message)

    while True:
        try:
            if session.phase == DialoguePhase.COLLECTING:
                prompt_text = "[prompt]>[/prompt] "
            elif session.phase == DialoguePhase.CONFIRMING:
                prompt_text = "[prompt](y/n)>[/prompt] "
            else:
                prompt_text = "[prompt]You:[/prompt] "

            user_input = console.input(prompt_text).strip()

            # Check for quit (only when no operation is in progress)
            if user_input.lower() in QUIT_WORDS and session.phase == DialoguePhase.IDLE:
                console.print("[muted]Goodbye![/muted]")
                break

            if user_input.lower() == "clear" and session.phase == DialoguePhase.IDLE:
                console.clear()
                print_welcome()
                continue

            # Empty input is a valid "yes" while confirming
            if not user_input and session.phase != DialoguePhase.CONFIRMING:
                continue

            respond(user_input)

        except KeyboardInterrupt:
            if session.phase != DialoguePhase.IDLE:
                render_action(session.interrupt())
            else:
                console.print("\n[muted]Use 'quit' to exit[/muted]")
        except EOFError:
            break


@app.command()
def parse(
    text: str = typer.Argument(..., help="Text to interpret"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Interpret one sentence and show what cryptofolio understood.

    [green]Examples:[/green]
        cryptofolio parse "sold 2 eth on kraken"
        cryptofolio parse "price of btc and sol" --json
    """
    service = AiService.from_settings()
    result = service.parse_input(text)

    command = None
    if not result.missing and not result.intent.is_control:
        command = synthesize(result.intent, result.entities)

    if as_json:
        payload = {
            "intent": result.intent.value,
            "confidence": result.confidence,
            "entities": {name: _entity_json(e) for name, e in result.entities.items()},
            "missing": list(result.missing),
            "command": command,
        }
        json_console.print(json.dumps(payload, indent=2), soft_wrap=True)
        return

    console.print(
        f"[primary]{result.intent.value}[/primary] [muted]({result.confidence:.0%})[/muted]"
    )
    for name, entity in result.entities.items():
        console.print(f"  [muted]{name}:[/muted] [highlight]{entity}[/highlight]")
    if result.missing:
        console.print(f"  [warning]missing:[/warning] {', '.join(result.missing)}")
    if command:
        console.print(f"[success]{Symbols.NEXT}[/success] [command]{command}[/command]")


def _entity_json(entity: Entity):
    """JSON-friendly value of an entity."""
    if entity.kind == EntityKind.NUMBER:
        return entity.as_number()
    if entity.kind == EntityKind.SYMBOLS:
        return list(entity.as_symbols())
    if entity.kind == EntityKind.BOOLEAN:
        return entity.as_bool()
    return entity.as_string()


@app.command("ai-status")
@handle_errors()
def ai_status():
    """Show which AI providers are configured and reachable."""
    service = AiService.from_settings()
    print_provider_status(service.mode.value, service.active_label, service.status())


@app.command()
def setup():
    """Store the Anthropic API key used for cloud parsing.

    The key goes to your system keyring when one is available.
    """
    console.print("[primary]cryptofolio Setup[/primary]\n")
    console.print("[bold]Anthropic API Key[/bold]")
    console.print("[muted]Get your key at: https://console.anthropic.com[/muted]")

    existing = CredentialManager.get_anthropic_key()
    if existing:
        console.print(f"[success]Current key: {existing[:8]}...{existing[-4:]}[/success]")
        if not typer.confirm("Update Anthropic API key?", default=False):
            console.print("[muted]Keeping existing key[/muted]")
            return

    key = typer.prompt(
        "Enter Anthropic API key (or press Enter to skip)", default="", hide_input=True
    )
    if not key:
        console.print("[muted]Skipped - local model and pattern matching will be used[/muted]")
        return

    if CredentialManager.set_anthropic_key(key):
        print_success("Anthropic API key saved")
    else:
        print_error("Could not store the API key")
        raise typer.Exit(1)


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
