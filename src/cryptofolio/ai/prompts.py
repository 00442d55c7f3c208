"""Prompts for the language-model providers."""

from typing import Optional

from cryptofolio.ai.conversation import ConversationState

SYSTEM_PROMPT = """You are a crypto portfolio assistant that parses natural language into structured commands.

TASK: Analyze user input and extract:
1. intent: The action the user wants to perform
2. entities: Structured data extracted from the input
3. missing: Required fields that weren't provided

AVAILABLE INTENTS:
- price.check: Get cryptocurrency price (entities: symbols[])
- market.view: Detailed market data (entities: symbol, show_24h)
- tx.buy: Record a buy transaction (entities: asset, quantity, account, price)
- tx.sell: Record a sell transaction (entities: asset, quantity, account, price)
- tx.transfer: Transfer between accounts (entities: asset, quantity, from_account, to_account)
- tx.swap: Swap one crypto for another (entities: from_asset, from_quantity, to_asset, to_quantity, account)
- portfolio.view: View portfolio (entities: account?, category?, by_account?, by_category?)
- holdings.list: List holdings (entities: account?)
- holdings.add: Add holdings (entities: asset, quantity, account, cost_basis?)
- holdings.remove: Remove holdings (entities: asset, quantity, account)
- holdings.move: Move holdings between accounts (entities: asset, quantity, from_account, to_account)
- account.list: List accounts
- account.add: Add account (entities: name, account_type, category)
- account.show: Show one account (entities: name)
- sync: Sync from exchange (entities: account?)
- help: User needs help
- ambiguous: Input could mean multiple things
- out_of_scope: Request is not about crypto portfolio management

ENTITY NORMALIZATION:
- Crypto symbols should be uppercase: "bitcoin" -> "BTC", "ethereum" -> "ETH"
- Account names preserve case
- Numbers should be parsed: "0.5", "half" -> 0.5, "1k" -> 1000

RESPOND IN JSON FORMAT ONLY:
{
  "intent": "tx.buy",
  "entities": {
    "asset": "BTC",
    "quantity": 0.1,
    "account": "Binance",
    "price": 95000
  },
  "missing": [],
  "confidence": 0.95
}

IMPORTANT:
- If critical info is missing, list it in "missing" array
- confidence should be 0.0-1.0
- For ambiguous inputs, use "ambiguous" intent
- For non-crypto questions, use "out_of_scope" intent"""


LOCAL_PROMPT = """Parse this crypto portfolio command into JSON.

INTENTS: price.check, tx.buy, tx.sell, portfolio.view, holdings.list, sync, help, unclear

{context}INPUT: "{text}"

RESPOND WITH JSON ONLY:
{{"intent": "...", "entities": {{...}}, "missing": [...], "confidence": 0.0-1.0}}"""


def build_context(state: Optional[ConversationState]) -> str:
    """Describe the short-term context for the cloud system prompt."""
    if state is None:
        return ""

    lines = []
    if state.last_account:
        lines.append(f"Last used account: {state.last_account}")
    if state.last_asset:
        lines.append(f"Last mentioned asset: {state.last_asset}")
    operation = state.context_summary()
    if operation:
        lines.append(f"Operation in progress: {operation}")

    if not lines:
        return ""
    return "\n\nCONTEXT:\n" + "\n".join(lines)


def build_system_prompt(state: Optional[ConversationState]) -> str:
    return SYSTEM_PROMPT + build_context(state)


def build_local_prompt(text: str, state: Optional[ConversationState]) -> str:
    """Build the single-string prompt sent to the local model."""
    context = ""
    if state is not None:
        lines = []
        if state.last_account:
            lines.append(f"- Last account: {state.last_account}")
        if state.last_asset:
            lines.append(f"- Last asset: {state.last_asset}")
        operation = state.context_summary()
        if operation:
            lines.append(f"- In progress: {operation}")
        if lines:
            context = "CONTEXT:\n" + "\n".join(lines) + "\n\n"
    return LOCAL_PROMPT.format(context=context, text=text)
