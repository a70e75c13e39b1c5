#!/usr/bin/env python3
# =============================================================================
# scripts/chat_interactive.py - Interactive Chat with a Persona
# =============================================================================
# Talk to an audience persona from the terminal. Nothing is stored: the
# persona is built from a local CSV (or the example spreadsheet audience)
# and the transcript lives in memory for the length of the session.
#
# Usage:
#   python scripts/chat_interactive.py <path_to_csv>
#   python scripts/chat_interactive.py                  # Uses example audience
#
# Commands:
#   /quit or /exit     - Exit the chat
#   /facts             - Show the persona's data points per category
#   /templates         - List query templates
#   /use <id> [K=V..]  - Ask a query template (variables as KEY=value)
#   /context           - Print the system context sent to the model
#   /help              - Show help
# =============================================================================

import os
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

# Check for API key
if not os.getenv("OPENAI_API_KEY"):
    print("ERROR: OPENAI_API_KEY not found in environment")
    print("Please set it in your .env file or environment")
    sys.exit(1)

from app.config import settings
from app.exceptions import QuarterbackException
from core.models.conversation import Message, MessageRole
from core.models.persona import Persona
from core.services.template_service import TemplateService
from lib.completion_client import CompletionClient
from lib.context import build_persona_context, greeting_for, group_by_category
from lib.normalizer import normalize_csv, sheet_persona_to_facts
from lib.sheets_client import MOCK_PERSONAS

LOCAL_CONVERSATION_ID = "local"


def load_csv_persona(file_path: str) -> Persona:
    """Build an in-memory persona from a CSV file."""
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    print(f"\n  Loading: {path.name}...")
    facts = normalize_csv(path.read_bytes())

    return Persona(
        id="local",
        name=f"Persona from {path.name}",
        raw_data=facts,
        summary=None,
    )


def example_persona() -> Persona:
    """The example spreadsheet audience as a persona."""
    sheet_persona = MOCK_PERSONAS[0]
    return Persona(
        id="example",
        name=sheet_persona.audience_name,
        raw_data=sheet_persona_to_facts(sheet_persona),
        summary=sheet_persona.summary,
        demographics=sheet_persona.demographics(),
    )


def print_header(persona: Persona) -> None:
    print("\n" + "=" * 60)
    print(f"  Chatting with: {persona.name}")
    print("=" * 60)
    print(f"\n  {len(persona.raw_data)} data points loaded")
    print("  Type /help for commands, /quit to leave\n")
    print(f"{persona.name}: {greeting_for(persona)}\n")


def print_help() -> None:
    print("""
Commands:
  /facts             Show the persona's data points per category
  /templates         List query templates
  /use <id> [K=V..]  Ask a query template, e.g. /use competitive_analysis BRAND=Honda
  /context           Print the system context sent to the model
  /quit              Exit
""")


def print_facts(persona: Persona) -> None:
    for category, values in group_by_category(persona.raw_data).items():
        print(f"\n  {category} ({len(values)})")
        for value in values:
            print(f"    - {value}")
    print()


def print_templates(templates: TemplateService) -> None:
    for template in templates.list_templates():
        variables = f"  [{', '.join(template.variables)}]" if template.variables else ""
        print(f"  {template.id:<32} {template.title}{variables}")
    print()


def parse_template_command(args: list[str]) -> tuple[str, dict[str, str]]:
    """Split `/use` arguments into a template id and KEY=value pairs."""
    template_id = args[0]
    variables = {}
    for pair in args[1:]:
        key, _, value = pair.partition("=")
        variables[key.strip().upper()] = value.replace("_", " ")
    return template_id, variables


def ask(completion: CompletionClient, persona: Persona, history: list[Message], query: str) -> str:
    """One chat turn against the in-memory transcript."""
    history.append(Message(conversation_id=LOCAL_CONVERSATION_ID, role=MessageRole.USER, content=query))
    context = build_persona_context(persona, history[-settings.CONTEXT_MESSAGE_LIMIT:])

    reply = completion.complete(system=context, user=query)

    history.append(Message(conversation_id=LOCAL_CONVERSATION_ID, role=MessageRole.ASSISTANT, content=reply))
    return reply


def main() -> None:
    persona = load_csv_persona(sys.argv[1]) if len(sys.argv) > 1 else example_persona()
    completion = CompletionClient.from_settings(settings)
    templates = TemplateService()
    history: list[Message] = []

    print_header(persona)

    while True:
        try:
            line = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            break

        if not line:
            continue

        if line.startswith("/"):
            command, *args = line.split()
            command = command.lower()

            if command in ("/quit", "/exit"):
                print("Goodbye!")
                break
            if command == "/help":
                print_help()
                continue
            if command == "/facts":
                print_facts(persona)
                continue
            if command == "/templates":
                print_templates(templates)
                continue
            if command == "/context":
                print(build_persona_context(persona, history[-settings.CONTEXT_MESSAGE_LIMIT:]))
                continue
            if command == "/use" and args:
                try:
                    template_id, variables = parse_template_command(args)
                    line = templates.render_template(template_id, variables)
                except QuarterbackException as e:
                    print(f"  {e.message}")
                    if e.suggestion:
                        print(f"  {e.suggestion}")
                    continue
                print(f"  > {line}")
            else:
                print(f"  Unknown command: {command}")
                continue

        try:
            reply = ask(completion, persona, history, line)
        except QuarterbackException as e:
            print(f"\n  Error: {e.message}\n")
            continue

        print(f"\n{persona.name}: {reply}\n")


if __name__ == "__main__":
    main()
