"""Interactive chat session: routes each typed line to the right transition."""

import logging
from typing import Callable, Optional

from cryptofolio.ai.actions import Action, Cancel, Execute
from cryptofolio.ai.conversation import ConversationManager, DialoguePhase
from cryptofolio.ai.intents import ParseResult
from cryptofolio.ai.router import AiService
from cryptofolio.shell.context import ShellContext
from cryptofolio.ui.console import warn_ai_fallback

logger = logging.getLogger(__name__)

# Words that abandon an operation while a value is being collected
CANCEL_WORDS = ("cancel", "abort", "stop")

CommandExecutor = Callable[[str], None]


class ChatSession:
    """One user's conversation with the engine.

    Owns the dialogue state, the shell context and the once-per-session
    fallback notice flag. Executed commands are handed to the executor.
    """

    def __init__(
        self,
        service: AiService,
        executor: Optional[CommandExecutor] = None,
        context: Optional[ShellContext] = None,
    ):
        self.service = service
        self.executor = executor
        self.context = context or ShellContext()
        self.manager = ConversationManager.with_context(
            self.context.last_account, self.context.last_asset
        )
        self.fallback_warned = False
        # Parse of the most recent line, None when the line was an answer
        self.last_result: Optional[ParseResult] = None
        self.service.set_fallback_notifier(self._on_fallback)

    @property
    def phase(self) -> DialoguePhase:
        return self.manager.phase

    def _on_fallback(self, reason: str) -> None:
        self.fallback_warned = warn_ai_fallback(reason, self.fallback_warned)

    def handle_line(self, text: str) -> Action:
        """Process one line of user input and return the action to render.

        Args:
            text: The line the user typed

        Returns:
            The action produced by the conversation manager
        """
        phase = self.manager.phase
        self.last_result = None

        if phase == DialoguePhase.CONFIRMING:
            action = self.manager.handle_confirmation(text)
        elif phase == DialoguePhase.COLLECTING:
            action = self._handle_answer(text)
        else:
            self.last_result = self.service.parse_input(text, self.manager.state)
            action = self.manager.process(self.last_result)

        if isinstance(action, Execute):
            self._execute(action.command)
        return action

    def _handle_answer(self, text: str) -> Action:
        """Treat the line as the answer to the pending clarification."""
        if text.strip().lower() in CANCEL_WORDS:
            return self.manager.interrupt()

        question = self.manager.current_question()
        if question is None:
            # Nothing is actually missing; let the manager decide
            return self.manager.handle_confirmation(text)

        entity = self.manager.handle_entity_input(text, question.field)
        if entity is None:
            logger.debug(f"Could not parse {text!r} as {question.field}")
            return question
        return self.manager.provide_entity(question.field, entity)

    def _execute(self, command: str) -> None:
        self.context.update_from_command(command)
        if self.executor is not None:
            self.executor(command)

    def interrupt(self) -> Cancel:
        """Cancel the current operation (Ctrl+C)."""
        return self.manager.interrupt()
