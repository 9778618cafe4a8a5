"""
OpenRTX Companion CLI

Terminal front-end: discovers radios, then flashes, backs up or restores
them while rendering progress on a fixed tick.
"""

import sys
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.logging import RichHandler
from rich.progress import Progress, BarColumn, TextColumn

from openrtx_companion import __version__
from openrtx_companion.context import CompanionContext
from openrtx_companion.core import (
    CompanionSettings,
    OperationKind,
    OperationStatus,
    Orchestrator,
    StatusMessage,
    TabId,
    TabStateMachine,
    TickDriver,
    TabSelected,
    TargetSelected,
    PathRequested,
    FilePath,
    StartPressed,
)
from openrtx_companion.core.errors import (
    NoPathSelected,
    NoTargetSelected,
    ResourceBusy,
)
from openrtx_companion.devices import (
    FlashTarget,
    is_selectable,
    list_flash_targets,
    list_serial_ports,
)
from openrtx_companion.models import list_models

logger = logging.getLogger("openrtx_companion")

# Setup Rich console
console = Console()

app = typer.Typer(help="📻 OpenRTX Companion - flash, back up and restore OpenRTX radios")

# Seconds to wait for a worker thread after its operation finished
WORKER_JOIN_TIMEOUT = 5.0


def configure_logging(verbose: bool = False) -> None:
    """Route log records through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
        force=True,
    )


def print_header(text: str) -> None:
    """Print fancy header."""
    console.print(Panel(text, expand=False, style="bold blue"))


def print_success(text: str) -> None:
    """Print success message."""
    console.print(f"✓ {text}", style="green")


def print_warning(text: str) -> None:
    """Print warning message."""
    console.print(f"⚠️  {text}", style="yellow")


def print_error(text: str) -> None:
    """Print error message."""
    console.print(f"❌ {text}", style="red")


@app.callback()
def main_options(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    tick: Optional[float] = typer.Option(None, "--tick", help="Progress refresh interval in seconds"),
) -> None:
    """Global options."""
    configure_logging(verbose)
    try:
        settings = CompanionSettings.from_env()
    except ValueError as e:
        raise typer.BadParameter(str(e))
    if tick is not None and tick <= 0:
        raise typer.BadParameter(f"Invalid tick interval: {tick}")
    ctx.obj = settings.with_overrides(tick_interval=tick)


def _settings(ctx: typer.Context, simulate: bool) -> CompanionSettings:
    settings = ctx.obj if isinstance(ctx.obj, CompanionSettings) else CompanionSettings.from_env()
    if simulate:
        settings = settings.with_overrides(simulate=True)
    return settings


def run_operation(
    context: CompanionContext,
    tab: TabId,
    kind: OperationKind,
    target,
    path: Optional[str],
) -> None:
    """
    Drive one operation through the tab state machine until it finishes.

    Raises:
        typer.Exit: code 1 if the operation could not start or failed
    """
    machine = TabStateMachine(context, Orchestrator(context))
    state = machine.state(tab)

    machine.dispatch(TabSelected(tab))
    machine.dispatch(TargetSelected(tab, target))

    has_target = state.selected_target is not None and is_selectable(state.selected_target)
    if path is None and not has_target:
        # Nothing to run against; don't ask for a file first
        console.print(StatusMessage.from_error(NoTargetSelected()).to_cli_string(verbose=True), style="red")
        raise typer.Exit(1)

    if path is None:
        machine.dispatch(PathRequested(tab, kind))
        machine.wait_for_pickers()
        machine.process_pending()
        if state.selected_path is None:
            print_warning(state.status_text)
            raise typer.Exit(0)
    else:
        machine.dispatch(FilePath(tab, path))

    handle = machine.dispatch(StartPressed(tab, kind))
    if handle is None:
        message = _precondition_message(state)
        console.print(message.to_cli_string(verbose=True), style="red")
        raise typer.Exit(1)

    console.print(f"Target: {state.selected_target}")
    console.print(f"Path: {state.selected_path}")

    with Progress(
        TextColumn("[{task.description}]"),
        BarColumn(),
        TextColumn("[{task.percentage:.0f}%]"),
        console=console,
    ) as progress:
        task = progress.add_task(state.status_text, total=100)

        def on_tick() -> None:
            machine.tick()
            progress.update(task, completed=state.progress, description=state.status_text)

        TickDriver(on_tick, interval=context.settings.tick_interval).run(
            until=lambda: not state.is_running,
        )

    if not handle.join(WORKER_JOIN_TIMEOUT):
        logger.warning("Worker %s still running after completion", handle.name)

    show_result(state)
    if state.status != OperationStatus.COMPLETE:
        raise typer.Exit(1)


def _precondition_message(state) -> StatusMessage:
    if state.selected_target is None or not is_selectable(state.selected_target):
        return StatusMessage.from_error(NoTargetSelected())
    if not state.selected_path:
        return StatusMessage.from_error(NoPathSelected())
    return StatusMessage.from_error(ResourceBusy(state.selected_target.resource))


def show_result(state) -> None:
    """Print the final status of an operation."""
    result = state.result
    if state.status == OperationStatus.COMPLETE:
        print_success(state.status_text)
    else:
        print_error(state.status_text)

    if result is None:
        return

    table = Table(title="Operation Summary")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Operation", result.operation)
    table.add_row("Target", result.target or "-")
    table.add_row("Path", result.path or "-")
    table.add_row("Bytes", f"{result.bytes_len:,}")
    console.print(table)

    for warning in result.warnings:
        print_warning(warning)
    for error in result.errors:
        print_error(error)


# =============================================================================
# Discovery commands
# =============================================================================

@app.command()
def ports() -> None:
    """List available serial ports."""
    print_header("Available Serial Ports")

    ports_list = [p for p in list_serial_ports() if is_selectable(p)]
    if not ports_list:
        print_warning("No serial ports found")
        return

    table = Table(title="Serial Ports")
    table.add_column("Port", style="cyan")
    table.add_column("Vendor", style="magenta")
    table.add_column("Product", style="green")

    for port in ports_list:
        table.add_row(port.name, port.vendor or "-", port.product or "-")

    console.print(table)


@app.command()
def targets() -> None:
    """List connected radios that can be flashed."""
    print_header("Flashable Radios")

    found = [t for t in list_flash_targets() if is_selectable(t)]
    if not found:
        print_warning("No radio found. Connect it and put it in flashing mode.")
        return

    table = Table(title="Radios")
    table.add_column("#", style="dim")
    table.add_column("Manufacturer", style="magenta")
    table.add_column("Model", style="cyan")
    table.add_column("Port", style="green")

    for target in found:
        table.add_row(str(target.index), target.manufacturer, target.model, target.port)

    console.print(table)


@app.command()
def models() -> None:
    """List radios supported by OpenRTX."""
    print_header("Supported Radios")

    table = Table(title="Models")
    table.add_column("Model", style="cyan")
    table.add_column("Manufacturer", style="magenta")
    table.add_column("USB IDs", style="green")
    table.add_column("Backup Size", style="yellow")

    for config in list_models():
        usb_ids = ", ".join(f"{vid:04X}:{pid:04X}" for vid, pid in config.usb_ids) or "-"
        table.add_row(config.name, config.manufacturer, usb_ids, f"{config.memory_size:,} bytes")

    console.print(table)


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"OpenRTX Companion {__version__}")


# =============================================================================
# Operation commands
# =============================================================================

@app.command()
def flash(
    ctx: typer.Context,
    firmware: Optional[str] = typer.Argument(None, help="Firmware image (prompted if omitted)"),
    target: Optional[int] = typer.Option(None, "--target", "-t", help="Radio index from 'targets'"),
    port: Optional[str] = typer.Option(None, "--port", "-p", help="Serial port, if the radio is not listed"),
    simulate: bool = typer.Option(False, "--simulate", help="Simulate without touching hardware"),
) -> None:
    """Flash OpenRTX firmware onto a radio."""
    print_header("Flash Firmware")

    settings = _settings(ctx, simulate)
    context = CompanionContext.discover(settings)

    selected = None
    if target is not None:
        selected = context.find_target(target)
        if selected is None:
            print_error(f"No radio with index {target}")
    elif port:
        selected = FlashTarget(index=-1, manufacturer="Unknown", model="radio", port=port)
    else:
        found = [t for t in context.flash_targets if is_selectable(t)]
        if len(found) == 1:
            selected = found[0]

    run_operation(context, TabId.FLASH, OperationKind.FLASH, selected, firmware)


@app.command()
def backup(
    ctx: typer.Context,
    destination: Optional[str] = typer.Argument(None, help="Backup folder (prompted if omitted)"),
    port: Optional[str] = typer.Option(None, "--port", "-p", help="Serial port (e.g., /dev/ttyACM0)"),
    simulate: bool = typer.Option(False, "--simulate", help="Simulate without touching hardware"),
) -> None:
    """Back up radio memory into a folder."""
    print_header("Backup Radio")

    settings = _settings(ctx, simulate)
    context = CompanionContext.discover(settings)
    selected = context.find_port(port) if port else None

    run_operation(context, TabId.BACKUP, OperationKind.BACKUP, selected, destination)


@app.command()
def restore(
    ctx: typer.Context,
    image: Optional[str] = typer.Argument(None, help="Backup image to restore (prompted if omitted)"),
    port: Optional[str] = typer.Option(None, "--port", "-p", help="Serial port (e.g., /dev/ttyACM0)"),
    simulate: bool = typer.Option(False, "--simulate", help="Simulate without touching hardware"),
) -> None:
    """Restore a backup image onto the radio."""
    print_header("Restore Radio")

    settings = _settings(ctx, simulate)
    context = CompanionContext.discover(settings)
    selected = context.find_port(port) if port else None

    run_operation(context, TabId.BACKUP, OperationKind.RESTORE, selected, image)


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted; the radio may need a power cycle[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[red bold]Fatal error:[/red bold] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
