from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

import pastevector.core.config as config
from pastevector.backends import select_backends
from pastevector.backends.windows import WindowsBridge
from pastevector.core import BACKEND_PREFERENCES
from pastevector.core.config import Config
from pastevector.core.pipeline import PastePipeline
from pastevector.core.probe import CapabilityProbe
from pastevector.editor import MarkdownFileEditor

app = typer.Typer(help="pasteVector CLI: paste clipboard vector/raster images into markdown.")
console = Console(stderr=True)

# Config subcommands (open/show/init user configuration)
config_app = typer.Typer(help="Config utilities (open/show/init user configuration)")
app.add_typer(config_app, name="config")


def _check_backend(value: str | None) -> str | None:
    if value is not None and value.strip().lower() not in BACKEND_PREFERENCES:
        raise typer.BadParameter(f"must be one of {', '.join(BACKEND_PREFERENCES)}")
    return value.strip().lower() if value else value


@config_app.command("open")
def config_open() -> None:
    """
    Open the user configuration directory in the platform's file manager.
    """
    path = config.USER_CONFIG_DIR
    if not path.exists():
        console.print(f"[yellow]User config directory does not exist:[/yellow] {path}")
        console.print("Run `pastevector config init` to create it.")
        return
    try:
        typer.launch(str(path))
        console.print(f"Opened config directory: {path}")
    except Exception as e:
        console.print(f"[red]Failed to open config directory with system handler:[/red] {e}")
        console.print(f"Please open it manually: {path}")


@config_app.command("show")
def config_show() -> None:
    """
    Display the effective configuration and relevant paths.
    """
    cfg = Config.load()

    console.print("[bold underline]pasteVector - Configuration (effective)[/bold underline]")
    console.print(
        f"[cyan]User config file:[/cyan] {cfg.user_config_file} "
        f"(exists={cfg.user_config_file.exists()})"
    )
    console.print(f"[cyan]Log directory:[/cyan] {cfg.logs_dir}")
    console.print()
    console.print("[bold]defaults[/bold]")
    for key, value in asdict(cfg.defaults).items():
        console.print(f"  {key}: {value!r}", markup=False)


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config.toml"),
) -> None:
    """
    Create config.toml with commented defaults. Does not overwrite unless --force.
    """
    cfg_path = config.init_user_config(force=force)
    console.print(f"Ensured user config: {cfg_path}")


@app.command()
def paste(
    document: Path = typer.Argument(..., help="Markdown document that receives the image."),
    line: int | None = typer.Option(None, "--line", "-l", min=1, help="Cursor line (1-based)."),
    column: int | None = typer.Option(
        None, "--column", "-c", min=1, help="Cursor column (1-based)."
    ),
    stdout: bool = typer.Option(
        False, "--stdout", help="Print the markdown snippet instead of editing the document."
    ),
    backend: str | None = typer.Option(
        None,
        "--backend",
        callback=_check_backend,
        help="Native backend tried first: auto, wayland or x11 (overrides config).",
    ),
    alt: str | None = typer.Option(None, "--alt", help="Alt text (overrides config)."),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    ),
):
    """
    Paste the clipboard into DOCUMENT as an image file plus a markdown reference.

    Vector formats win over raster ones: SVG, compressed SVG and EMF (converted
    with emf2svg-conv) are tried before PNG and JPEG. Under WSL the Windows
    clipboard is queried first. Plain text falls back to a normal text paste.
    """
    try:
        cfg = Config.load(log_level=log_level)
        if backend:
            cfg.defaults.prefer_backend = backend
        if alt is not None:
            cfg.defaults.alt_text = alt

        editor = MarkdownFileEditor(document, line=line, column=column, to_stdout=stdout)
        outcome = PastePipeline(editor, cfg, CapabilityProbe()).run()
        if outcome is not None:
            console.print(f"Saved [cyan]{outcome.path}[/cyan] ({outcome.handler})")
    except Exception as e:
        logging.exception("Error in paste command")
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command("types")
def show_types(
    backend: str | None = typer.Option(
        None, "--backend", callback=_check_backend, help="auto, wayland or x11."
    ),
):
    """
    List the formats the clipboard currently offers, per usable backend.
    """
    probe = CapabilityProbe()
    try:
        cfg = Config.load()
        backends = select_backends(backend or cfg.defaults.prefer_backend, probe)
    except Exception as e:
        logging.exception("Error in types command")
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if not backends:
        console.print("[yellow]No usable clipboard backend (wl-paste / xclip).[/yellow]")

    for b in backends:
        try:
            offered = b.list_offered_types()
        except Exception as e:
            console.print(f"[red]backend={b.name} error:[/red] {e}")
            continue
        console.print(f"[bold]backend={b.name} types={len(offered)}[/bold]")
        table = Table()
        table.add_column("base")
        table.add_column("raw")
        for t in offered:
            table.add_row(t.base, t.raw)
        console.print(table)

    if probe.is_wsl():
        note = "available" if WindowsBridge.is_available(probe) else "unavailable"
        console.print(
            f"backend=windows ({note}): Windows clipboard formats are accessed via powershell.exe"
        )


if __name__ == "__main__":
    app()
