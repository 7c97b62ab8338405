"""
Command-line front end for chatflow

Sends one message through the configured provider and renders the reply.
Tool uses are listed but never executed here.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from .exceptions import ChatFlowError
from .orchestrator import ConversationOrchestrator, ConversationTurn
from .providers.provider_factory import ProviderFactory


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatflow",
        description="Send a chat message through an LLM provider",
    )
    parser.add_argument("message", nargs="?", help="Message to send")
    parser.add_argument(
        "--provider",
        help=f"Provider to use ({', '.join(ProviderFactory.supported_providers())})",
    )
    parser.add_argument("--model", help="Override the provider's default model")
    parser.add_argument(
        "--list-providers",
        action="store_true",
        help="List the supported providers and exit",
    )
    return parser


def render_providers(console: Console) -> None:
    table = Table(title="Providers")
    table.add_column("Name", style="cyan")
    table.add_column("Default model")
    table.add_column("API key variable", style="magenta")

    for name in ProviderFactory.supported_providers():
        info = ProviderFactory.get_provider_info(name)
        table.add_row(info["name"], info["default_model"], info["api_key_env_var"])

    console.print(table)


def render_turn(console: Console, turn: ConversationTurn, provider_name: str) -> None:
    response = turn.final_response
    if response is None:
        return

    if response.content:
        console.print(Panel(Markdown(response.content), title=provider_name, border_style="green"))

    for tool_use in turn.pending_tool_uses:
        console.print(f"[yellow]Tool requested:[/yellow] {tool_use.name} {tool_use.input}")

    if response.stop_reason:
        console.print(f"[dim]stop reason: {response.stop_reason}[/dim]")


async def _run(args: argparse.Namespace, console: Console) -> None:
    overrides = {"model_name": args.model} if args.model else {}
    provider = ProviderFactory.create(args.provider, **overrides)
    orchestrator = ConversationOrchestrator(provider)
    turn = await orchestrator.send(args.message)
    render_turn(console, turn, provider.name)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the chatflow command"""
    console = Console()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_providers:
        render_providers(console)
        return 0

    if not args.message:
        parser.print_usage()
        return 2

    try:
        asyncio.run(_run(args, console))
    except ChatFlowError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1
    except KeyboardInterrupt:
        console.print("\nExiting...")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
