"""Command-line interface for SAKHII.

Provides ``sakhii start``, ``status``, ``ask`` and ``listen``.  The entry
point is registered via ``pyproject.toml`` as ``sakhii = "sakhii.cli:cli"``.
"""

import asyncio
import logging

import click
import httpx

from sakhii.config import get_port
from sakhii.llm.gemini_client import GeminiClient
from sakhii.speech.factory import create_recognizer, create_synthesizer
from sakhii.voice.session import VoiceSession
from sakhii.voice.types import SessionPhase

logger = logging.getLogger(__name__)

_MIN_PORT = 1024
_MAX_PORT = 65535


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_port(port: int | None) -> int:
    """Return the port to use, falling back to env var / default."""
    if port is not None:
        return port
    return get_port()


def _validate_port(port: int) -> None:
    """Raise ``click.BadParameter`` if *port* is out of range."""
    if not (_MIN_PORT <= port <= _MAX_PORT):
        raise click.BadParameter(
            f"Port must be between {_MIN_PORT} and {_MAX_PORT}, got {port}."
        )


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # httpx logs every request URL at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _alert(message: str) -> None:
    click.echo(click.style(message, fg="red"), err=True)


def _print_outcome(session: VoiceSession) -> None:
    state = session.state
    if state.transcript:
        click.echo(f"You: {state.transcript}")
    if state.reply:
        colour = "magenta" if state.phase == SessionPhase.REPLIED else "yellow"
        click.echo(click.style("SAKHII: ", fg=colour, bold=True) + state.reply)


async def _run_cycle(text: str | None, speak: bool) -> VoiceSession:
    """Run one session cycle, typed when *text* is given, spoken otherwise."""
    gemini = GeminiClient()
    recognizer = create_recognizer() if text is None else None
    synthesizer = create_synthesizer() if speak else None
    session = VoiceSession(
        gemini, recognizer=recognizer, synthesizer=synthesizer, notifier=_alert
    )

    await gemini.start()
    for component in (recognizer, synthesizer):
        if component is not None:
            await component.start()
    try:
        if text is None:
            if await session.start():
                click.echo(click.style("Listening...", fg="cyan"))
        else:
            await session.ask(text)
        await session.wait()
        await session.wait_for_speech()
    finally:
        for component in (synthesizer, recognizer):
            if component is not None:
                await component.stop()
        await gemini.stop()
    return session


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """SAKHII -- voice assistant for women's reproductive health."""
    _setup_logging(verbose)


@cli.command()
@click.option("--port", default=None, type=int, help="Server port (default: 5000)")
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--no-speech", is_flag=True, help="Disable microphone and speaker")
def start(port: int | None, host: str, no_speech: bool) -> None:
    """Start the SAKHII server."""
    import uvicorn

    from sakhii.server.app import create_app

    port = _resolve_port(port)
    _validate_port(port)

    logging.getLogger().setLevel(logging.INFO)
    click.echo(f"Starting SAKHII on {host}:{port}...")
    app = create_app(enable_speech=not no_speech)
    try:
        uvicorn.run(app, host=host, port=port, log_level="info")
    except OSError as exc:
        if "address already in use" in str(exc).lower():
            click.echo(
                click.style(
                    f"Port {port} is already in use. "
                    "Choose a different port with --port.",
                    fg="red",
                )
            )
            raise SystemExit(1)
        raise


@cli.command()
@click.option("--port", default=None, type=int, help="Server port to check")
def status(port: int | None) -> None:
    """Show SAKHII server status."""
    port = _resolve_port(port)
    try:
        resp = httpx.get(f"http://127.0.0.1:{port}/health", timeout=2.0)
        data = resp.json()
    except (httpx.HTTPError, ValueError):
        click.echo(
            click.style(f"Server is not responding on port {port}.", fg="yellow")
        )
        raise SystemExit(1)

    click.echo(click.style("Server is healthy.", fg="green"))
    click.echo(f"  Version:      {data.get('version', '?')}")
    click.echo(f"  Port:         {port}")
    click.echo(f"  Gemini key:   {'set' if data.get('gemini_configured') else 'missing'}")
    click.echo(f"  Recognition:  {data.get('recognition_available', '?')}")
    click.echo(f"  Synthesis:    {data.get('synthesis_available', '?')}")
    click.echo(f"  Session:      {data.get('session_phase', '?')}")


@cli.command()
@click.argument("question")
@click.option("--speak", is_flag=True, help="Speak the reply aloud")
def ask(question: str, speak: bool) -> None:
    """Ask SAKHII a typed QUESTION."""
    session = asyncio.run(_run_cycle(question, speak))
    _print_outcome(session)
    if session.state.phase != SessionPhase.REPLIED:
        raise SystemExit(1)


@cli.command()
@click.option("--quiet", is_flag=True, help="Show the reply without speaking it")
def listen(quiet: bool) -> None:
    """Listen for one spoken question and answer it."""
    session = asyncio.run(_run_cycle(None, not quiet))
    if session.state.transcript is None:
        click.echo(click.style("Nothing was recognized.", fg="yellow"))
        raise SystemExit(1)
    _print_outcome(session)
