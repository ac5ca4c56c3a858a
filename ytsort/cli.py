"""Command line entry point for ytsort."""

from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from .dependencies import get_cache_repository, get_session, get_settings
from .logging_config import configure_application_logging
from .models.video import SORT_FIELDS
from .services.host_config import HostConfigError
from .services.page_source import PageLoadError, PlaylistPage, load_playlist_page
from .services.sort_pipeline import SortPipeline

console = Console(stderr=True)

SORT_KEY_CHOICE = click.Choice(list(SORT_FIELDS), case_sensitive=True)


@click.group()
@click.version_option(version="0.1.0")
def main():
    """ytsort - collect playlist video stats and render a sortable table."""
    pass


def _prepare(page_source: str) -> tuple[SortPipeline, PlaylistPage]:
    settings = get_settings()
    configure_application_logging(settings)
    try:
        page = load_playlist_page(
            page_source,
            base_url=settings.base_url,
            session_cookie=settings.session_cookie,
            timeout_seconds=settings.http_timeout_seconds,
        )
    except PageLoadError as exc:
        raise click.ClickException(str(exc)) from exc

    pipeline = SortPipeline(settings, get_session(), cache_store=get_cache_repository())
    try:
        pipeline.resolve_host_config(page)
    except HostConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    return pipeline, page


@click.command()
@click.argument("page_source")
@click.option("--sort", "sort_key", type=SORT_KEY_CHOICE, default=None, help="Field to sort by.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the table here instead of stdout.",
)
def render(page_source: str, sort_key: str | None, output: Path | None):
    """Collect stats for PAGE_SOURCE (URL or saved HTML file) and render the table."""
    pipeline, page = _prepare(page_source)

    with Progress(
        TextColumn("Processing videos"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("collect", total=None)

        def _advance(processed: int, total: int) -> None:
            progress.update(task, completed=processed, total=total)

        try:
            videos = pipeline.run(page, on_progress=_advance)
        except HostConfigError as exc:
            raise click.ClickException(str(exc)) from exc

    html_text = pipeline.session.render(sort_key)
    if output is None:
        click.echo(html_text)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(html_text, encoding="utf-8")
        console.print(f"[green]Wrote {len(videos)} videos to {output}[/green]")


@click.command()
@click.argument("page_source")
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", default=8765, show_default=True, type=int, help="Port to bind.")
def serve(page_source: str, host: str, port: int):
    """Serve the table for PAGE_SOURCE; column headers re-sort it."""
    import uvicorn

    from .main import create_app
    from .services.background_collection import BackgroundCollection

    pipeline, page = _prepare(page_source)
    collection = BackgroundCollection(lambda: pipeline.run(page))
    app = create_app(collection=collection)

    console.print(f"Serving on [bold]http://{host}:{port}/[/bold]")
    uvicorn.run(app, host=host, port=port, log_config=None)


main.add_command(render)
main.add_command(serve)


if __name__ == "__main__":
    main()
