"""CLI entry point for pi-overlay. Uses Click for argument parsing."""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import click

from pi.overlay.config import OverlayConfig
from pi.overlay.sink import OutputSink, ProcessSink
from pi.overlay.stream import OverlayStream

logger = logging.getLogger(__name__)

_READ_SIZE = 4096


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


@click.group(invoke_without_command=True)
@click.option(
    "--log-level",
    default="warning",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level for messages on stderr",
)
@click.pass_context
def main(ctx, log_level):
    """Show a status overlay in the corner of a terminal."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command("run", context_settings={"ignore_unknown_options": True})
@click.option("--status", default=None, help="Overlay text (default: the command name)")
@click.option(
    "--flash-exit/--no-flash-exit",
    default=True,
    help="Flash the exit code before returning",
)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
def run(status, flash_exit, command):
    """Run COMMAND with its output under a status overlay."""
    code = _run(run_command(list(command), status=status, flash_exit=flash_exit))
    sys.exit(code)


async def run_command(
    argv: list[str],
    *,
    status: str | None = None,
    flash_exit: bool = True,
    sink: OutputSink | None = None,
    config: OverlayConfig | None = None,
) -> int:
    """Pipe *argv*'s merged stdout/stderr through an overlay stream.

    Returns the child's exit code.
    """
    stream = OverlayStream(
        sink if sink is not None else ProcessSink(),
        config=config if config is not None else OverlayConfig.from_env(),
    )
    try:
        stream.set_overlay_status(status or os.path.basename(argv[0]))
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError:
            raise click.ClickException(f"command not found: {argv[0]}") from None

        assert proc.stdout is not None
        await _pump(proc.stdout, stream)
        returncode = await proc.wait()
        logger.info("%s exited with %d", argv[0], returncode)

        if flash_exit and stream.is_tty:
            stream.flash_overlay_message(f"exit {returncode}")
            await asyncio.sleep(stream.config.flash_duration)
        return returncode
    finally:
        stream.end()


async def _pump(reader: asyncio.StreamReader, stream: OverlayStream) -> None:
    drained = asyncio.Event()
    unsubscribe = stream.on_drain(drained.set)
    try:
        while True:
            chunk = await reader.read(_READ_SIZE)
            if not chunk:
                break
            drained.clear()
            if not stream.write(chunk):
                await drained.wait()
    finally:
        unsubscribe()


# ---------------------------------------------------------------------------
# demo
# ---------------------------------------------------------------------------


@main.command("demo")
@click.option("--lines", default=50, show_default=True, help="Number of lines to print")
@click.option("--delay", default=0.1, show_default=True, help="Seconds between lines")
def demo(lines, delay):
    """Print numbered lines under a ticking status overlay."""
    _run(run_demo(lines, delay))


async def run_demo(
    lines: int,
    delay: float,
    *,
    sink: OutputSink | None = None,
    config: OverlayConfig | None = None,
) -> None:
    stream = OverlayStream(
        sink if sink is not None else ProcessSink(),
        config=config if config is not None else OverlayConfig.from_env(),
    )
    with stream:
        for i in range(1, lines + 1):
            stream.write(f"line {i}\n")
            stream.set_overlay_status(f"{i}/{lines}")
            if i % 10 == 0:
                stream.flash_overlay_message(f"reached {i}")
            await asyncio.sleep(delay)


if __name__ == "__main__":
    main()
