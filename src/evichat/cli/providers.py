"""Client factory functions for the CLI.

Centralizes creation of the config and HTTP clients from environment
variables. Hides configuration details from command implementations.
"""

import asyncio
import os

import typer
from rich.console import Console

from ..config import ChatConfig
from ..errors import ConfigurationError
from ..retrieval import RetrievalProvider, retrieval_from_settings
from ..tts import SpeechSynthesizer, create_speech_synthesizer

# Default console for output
_console = Console()


def get_config(console: Console | None = None, use_token: bool = False) -> ChatConfig:
    """Build the session config from environment variables.

    Args:
        console: Optional Rich console for output
        use_token: Fetch an access token from MY_SERVER_AUTH_URL instead of
            using HUME_API_KEY

    Raises:
        SystemExit: If the EVI credentials are missing or ambiguous
    """
    con = console or _console
    try:
        if use_token:
            config = asyncio.run(ChatConfig.from_env_with_token())
        else:
            config = ChatConfig.from_env()
        config.credentials.query_param()
    except ConfigurationError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    return config


def require_retrieval(console: Console | None = None) -> RetrievalProvider:
    """Create the knowledge-base client, exiting if it is not configured.

    Environment variables:
        PINECONE_API_KEY: Pinecone API key (required)
        PINECONE_ASSISTANT_NAME: Assistant name (default: tes)
        PINECONE_BASE_URL: Assistant base URL
    """
    con = console or _console
    settings = ChatConfig.from_env().retrieval
    if settings is None:
        con.print("[red]Error: PINECONE_API_KEY not set in environment[/red]")
        raise typer.Exit(code=1)
    return retrieval_from_settings(settings)


def require_synthesizer(console: Console | None = None) -> SpeechSynthesizer:
    """Create the TTS client, exiting if HUME_API_KEY is not set."""
    con = console or _console
    api_key = os.getenv("HUME_API_KEY")
    if not api_key:
        con.print("[red]Error: HUME_API_KEY not set in environment[/red]")
        raise typer.Exit(code=1)
    return create_speech_synthesizer("hume", api_key=api_key)
