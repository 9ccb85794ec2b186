"""CLI entry point for conshell."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import threading

import typer

from conshell.config import ConsoleConfig
from conshell.errors import ConsoleError, SpawnError

app = typer.Typer(
    name="conshell",
    help="Run a shell behind an embeddable console core.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _resolve_config(
    config_file: str | None, shell: str | None, args: list[str] | None
) -> ConsoleConfig:
    config = ConsoleConfig.load(config_file)
    if shell:
        config.shell.command = shell
    if args:
        config.shell.args = list(args)
    return config


@app.command()
def run(
    shell: str | None = typer.Option(
        None, "--shell", "-s", help="Shell executable (overrides config)."
    ),
    arg: list[str] | None = typer.Option(
        None, "--arg", "-a", help="Shell argument; repeat for several."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Path to a JSON config file."
    ),
) -> None:
    """Open an interactive console on the configured shell."""
    setup_logging(verbose)
    config = _resolve_config(config_file, shell, arg)

    try:
        exit_code = asyncio.run(_run_console(config))
    except SpawnError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        exit_code = 130
    raise typer.Exit(exit_code)


@app.command("config")
def show_config(
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Path to a JSON config file."
    ),
) -> None:
    """Print the resolved configuration as JSON."""
    config = ConsoleConfig.load(config_file)
    typer.echo(json.dumps(config.model_dump(), indent=2))


async def _run_console(config: ConsoleConfig) -> int:
    """Forward stdin lines to the console and print its output until either side ends."""
    from conshell.session.console import Console
    from conshell.session.wire import EventType, Wire

    wire = Wire()
    queue = wire.subscribe()
    console = Console.from_config(wire, config)
    await console.start()

    exit_code = 0

    # --- Wire consumer (async background task) ---
    async def _consume_wire() -> None:
        nonlocal exit_code
        while True:
            event = await queue.get()
            if event is None:
                break

            d = event.data
            if event.type in (EventType.STDOUT, EventType.STDERR):
                typer.echo(d.get("text", ""), nl=False)
                sys.stdout.flush()

            elif event.type == EventType.ERROR:
                typer.echo(f"\n[error] {d.get('error', 'Unknown error')}", err=True)

            elif event.type == EventType.ENDED:
                code = d.get("exit_code")
                exit_code = code if isinstance(code, int) else 0
                typer.echo(f"\n[exited] code={code if code is not None else '?'}")
                break

            elif event.type == EventType.ABORTED:
                break

        wire.unsubscribe(queue)

    consumer_task = asyncio.create_task(_consume_wire())

    # stdin is read on a daemon thread so a pending readline never blocks exit.
    lines: asyncio.Queue[str | None] = asyncio.Queue()
    loop = asyncio.get_running_loop()

    def _read_stdin() -> None:
        for line in sys.stdin:
            loop.call_soon_threadsafe(lines.put_nowait, line.rstrip("\n"))
        loop.call_soon_threadsafe(lines.put_nowait, None)

    threading.Thread(target=_read_stdin, name="conshell-stdin", daemon=True).start()

    async def _forward_input() -> None:
        while True:
            line = await lines.get()
            if line is None:
                break
            try:
                console.execute(line)
            except ConsoleError as e:
                typer.echo(f"[error] {e}", err=True)
                break

    input_task = asyncio.create_task(_forward_input())

    # Whichever side finishes first ends the session.
    await asyncio.wait(
        [consumer_task, input_task], return_when=asyncio.FIRST_COMPLETED
    )
    console.close()
    await console.wait_closed()
    wire.close()
    await consumer_task
    input_task.cancel()
    return exit_code


def main() -> None:
    app()


if __name__ == "__main__":
    main()
