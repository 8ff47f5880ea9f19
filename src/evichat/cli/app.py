"""Main CLI application using Typer."""
import asyncio
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from ..audio import QueueAudioBridge
from ..chat import Role
from ..errors import ConfigurationError, TransportError
from ..session import (
    ConnectionChanged,
    EntryAppended,
    EntryRetracted,
    MuteChanged,
    SessionController,
    Subscription,
    build_chat_url,
    redact_url,
)
from .providers import get_config, require_retrieval, require_synthesizer

# Load environment variables
load_dotenv()

app = typer.Typer(
    name="evichat",
    help="Voice chat session core with knowledge-base answers",
    no_args_is_help=True,
    add_completion=True,
)

console = Console()


@app.callback()
def main(
    log_level: str = typer.Option(
        "warning",
        "--log-level",
        "-L",
        help="Logging level: debug, info, warning or error"
    )
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def url(
    use_token: bool = typer.Option(False, "--token", help="Authenticate via MY_SERVER_AUTH_URL"),
    config_id: str = typer.Option(None, "--config-id", "-c", help="Override HUME_CONFIG_ID"),
):
    """Print the EVI websocket target with credentials masked."""
    config = get_config(console, use_token)
    try:
        target = build_chat_url(
            config.credentials, config_id or config.config_id, host=config.evi_host
        )
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    console.print(redact_url(target))


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question for the knowledge base"),
    stream: bool = typer.Option(False, "--stream", "-s", help="Stream the answer"),
):
    """Ask the knowledge-base assistant one question."""
    async def _ask():
        async with require_retrieval(console) as retrieval:
            if stream:
                received = False
                async for fragment in retrieval.query_stream(question):
                    received = True
                    console.print(fragment, end="", markup=False)
                console.print()
                if not received:
                    console.print("[yellow]No answer received[/yellow]")
                    raise typer.Exit(code=1)
                return

            answer = await retrieval.query(question)
            if answer is None:
                console.print("[red]Could not fetch from knowledge base[/red]")
                raise typer.Exit(code=1)
            console.print(answer, markup=False)

    asyncio.run(_ask())


@app.command()
def speak(
    text: str = typer.Argument(..., help="Text to synthesize"),
    out: Path = typer.Option(..., "--out", "-o", help="Output mp3 file"),
    stream: bool = typer.Option(False, "--stream", "-s", help="Use the streaming endpoint"),
):
    """Synthesize text to an mp3 file."""
    async def _speak():
        async with require_synthesizer(console) as synthesizer:
            if stream:
                chunks = [chunk async for chunk in synthesizer.synthesize_stream(text)]
                audio = b"".join(chunks) if chunks else None
            else:
                audio = await synthesizer.synthesize(text)

        if not audio:
            console.print("[red]Speech synthesis failed[/red]")
            raise typer.Exit(code=1)
        out.write_bytes(audio)
        console.print(f"[green]Wrote {len(audio)} bytes to {out}[/green]")

    asyncio.run(_speak())


async def _print_events(subscription: Subscription) -> None:
    async for event in subscription:
        if isinstance(event, EntryAppended):
            entry = event.entry
            if entry.placeholder:
                console.print(f"[dim]{entry.content}[/dim]")
                continue
            scores = ", ".join(f"{s.label} {s.score:.2f}" for s in entry.scores)
            who = "[bold cyan]you[/bold cyan]" if entry.role is Role.USER else "[bold green]assistant[/bold green]"
            console.print(f"{who}: {entry.content}", highlight=False)
            if scores:
                console.print(f"[dim]  ({scores})[/dim]")
        elif isinstance(event, EntryRetracted):
            continue
        elif isinstance(event, ConnectionChanged):
            console.print(f"[dim]-- {event.state.value} --[/dim]")
        elif isinstance(event, MuteChanged):
            console.print(f"[dim]-- {'muted' if event.muted else 'unmuted'} --[/dim]")


@app.command()
def chat(
    use_token: bool = typer.Option(False, "--token", help="Authenticate via MY_SERVER_AUTH_URL"),
    config_id: str = typer.Option(None, "--config-id", "-c", help="Override HUME_CONFIG_ID"),
):
    """Text-only chat session. Commands: /mute, /unmute, /history, /quit."""
    config = get_config(console, use_token).model_copy(update={"tts_enabled": False})

    async def _chat():
        async with SessionController(config, QueueAudioBridge()) as controller:
            subscription = controller.subscribe()
            printer = asyncio.create_task(_print_events(subscription))
            try:
                await controller.connect(config_id=config_id)
            except TransportError as e:
                console.print(f"[yellow]{e}; continuing with knowledge base only[/yellow]")

            while True:
                try:
                    line = await asyncio.to_thread(input)
                except (EOFError, KeyboardInterrupt):
                    break
                command = line.strip()
                if command in ("/quit", "/exit"):
                    break
                if command == "/mute":
                    await controller.mute()
                elif command == "/unmute":
                    await controller.unmute()
                elif command == "/history":
                    console.print(controller.chat_log.to_transcript(), markup=False)
                else:
                    await controller.send_text(command)

            await controller.disconnect(wait_pending=True)
            subscription.close()
            await printer

    asyncio.run(_chat())


if __name__ == "__main__":
    app()
