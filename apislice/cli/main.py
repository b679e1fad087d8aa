"""Main CLI command group for apislice."""

import asyncio
import io
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

import click
from rich.console import Console

from apislice import __version__
from apislice.core.config_manager import ConfigManager
from apislice.core.parsing.document_io import DocumentLoader, DocumentWriter
from apislice.core.service import SliceService
from apislice.core.styling.style import OpenApiStyle
from apislice.models.document import Document
from apislice.utils.exceptions import ErrorHandler, SliceError
from apislice.utils.logging import LoggingContext, SliceLogger, configure_logging

console = Console(stderr=True)

STYLE_CHOICES = [style.value.lower() for style in OpenApiStyle]


def _build_service(cli_overrides: Optional[Dict[str, object]] = None) -> SliceService:
    config = ConfigManager().load_config(cli_overrides=cli_overrides)
    return SliceService(config)


def _load_documents(loader: DocumentLoader, sources: Tuple[str, ...]) -> Tuple[Document, ...]:
    async def load_all():
        return await asyncio.gather(*(loader.load(source) for source in sources))

    return tuple(asyncio.run(load_all()))


def _emit_text(content: str, output: Optional[str], logger: SliceLogger) -> None:
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.success(f"Wrote {path}")
    else:
        click.echo(content)


def _emit_document(
    document: Document,
    fmt: str,
    output: Optional[str],
    logger: SliceLogger,
    inline_local_references: bool = False
) -> None:
    writer = DocumentWriter()
    if output:
        path = asyncio.run(writer.write(document, output, fmt, inline_local_references))
        logger.success(f"Wrote {path}")
    else:
        click.echo(writer.serialize(document, fmt, inline_local_references))


def _fail(ctx: click.Context, error: SliceError) -> None:
    handler = ErrorHandler(console=console, verbose=ctx.obj.get("verbose", False))
    handler.handle_error(error)
    ctx.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="apislice")
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (shows DEBUG level)"
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Quiet mode - only show warnings and errors"
)
@click.option(
    "--structured-logs",
    is_flag=True,
    help="Emit JSON log records on stderr"
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, structured_logs: bool) -> None:
    """apislice: Filter and re-style large OpenAPI documents.

    Selects operations by id, tag or url, copies every component they
    reference, and shapes the result for a downstream code generator.
    """
    ctx.ensure_object(dict)
    if verbose and quiet:
        console.print("[yellow]Warning: Both --verbose and --quiet specified. Using verbose mode.[/yellow]")
        quiet = False
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if quiet:
        log_level = "WARNING"
    elif verbose:
        log_level = "DEBUG"
    else:
        log_level = "INFO"
    configure_logging(log_level=log_level, structured=structured_logs)
    ctx.obj["logger"] = SliceLogger(console=console, verbose=verbose, quiet=quiet)


@cli.command(name="slice")
@click.argument("source", required=True)
@click.option("--operation-ids", help="Comma separated operation ids, or * for all")
@click.option("--tags", help="A tag regex, or comma separated tag names")
@click.option("--url", help="Relative url, e.g. /users/{user-id}")
@click.option(
    "--style",
    type=click.Choice(STYLE_CHOICES, case_sensitive=False),
    default="plain",
    show_default=True,
    help="Output style"
)
@click.option("--no-request-body", is_flag=True, help="Empty request and response bodies (geautocomplete)")
@click.option(
    "--format", "fmt",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default="json",
    show_default=True,
    help="Output format"
)
@click.option("--inline-refs", is_flag=True, help="Inline local references in the output")
@click.option("--title", help="Title of the generated document")
@click.option("--graph-version", help="Graph version for info, server url and url lookups")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (default: stdout)")
@click.pass_context
def slice_command(
    ctx: click.Context,
    source: str,
    operation_ids: Optional[str],
    tags: Optional[str],
    url: Optional[str],
    style: str,
    no_request_body: bool,
    fmt: str,
    inline_refs: bool,
    title: Optional[str],
    graph_version: Optional[str],
    output: Optional[str]
) -> None:
    """Extract a styled subset of SOURCE.

    \b
    Examples:
        apislice slice graph.yaml --operation-ids users.user_ListUser
        apislice slice graph.yaml --tags "users.*" --style powershell
        apislice slice graph.yaml --url /users/12345 -o users.json
    """
    logger: SliceLogger = ctx.obj["logger"]
    try:
        service = _build_service({
            "subset.title": title,
            "subset.graph_version": graph_version,
        })
        with LoggingContext(logger, "slice", source=source, style=style):
            logger.progress(f"Loading {source}")
            (document,) = _load_documents(service.loader, (source,))
            sliced = service.slice(
                document,
                operation_ids=operation_ids,
                tags=tags,
                url=url,
                style=style,
                include_request_body=not no_request_body,
            )
        _emit_document(sliced, fmt, output, logger, inline_local_references=inline_refs)
    except SliceError as e:
        _fail(ctx, e)


@cli.command()
@click.argument("sources", nargs=-1, required=True)
@click.option(
    "--label", "-l", "labels",
    multiple=True,
    help="Label per source, in order (default: file stem)"
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (default: stdout)")
@click.pass_context
def tree(ctx: click.Context, sources: Tuple[str, ...], labels: Tuple[str, ...], output: Optional[str]) -> None:
    """Print the url tree of one or more SOURCES as JSON.

    \b
    Examples:
        apislice tree v1.0.yaml beta.yaml
        apislice tree graph.yaml --label v1.0 -o tree.json
    """
    logger: SliceLogger = ctx.obj["logger"]
    if labels and len(labels) != len(sources):
        raise click.BadParameter(
            f"Got {len(labels)} label(s) for {len(sources)} source(s)",
            param_hint="--label"
        )
    names = labels or tuple(Path(source).stem for source in sources)

    try:
        service = _build_service()
        with LoggingContext(logger, "tree", sources=list(sources)):
            documents = _load_documents(service.loader, sources)
            root = service.create_url_tree(dict(zip(names, documents)))
            sink = io.StringIO()
            service.convert_url_tree_to_json(root, sink)
        _emit_text(sink.getvalue(), output, logger)
    except SliceError as e:
        _fail(ctx, e)


@cli.command()
@click.argument("source", required=True)
@click.option("--batch-size", type=click.IntRange(min=1), help="Path entries per batch")
@click.option(
    "--format", "fmt",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default="json",
    show_default=True,
    help="Output format"
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (default: stdout)")
@click.pass_context
def normalize(
    ctx: click.Context,
    source: str,
    batch_size: Optional[int],
    fmt: str,
    output: Optional[str]
) -> None:
    """Relink every reference in SOURCE by name, in batches of paths."""
    logger: SliceLogger = ctx.obj["logger"]
    try:
        service = _build_service({"normalizer.batch_size": batch_size})
        with LoggingContext(logger, "normalize", source=source):
            (document,) = _load_documents(service.loader, (source,))
            normalized = service.fix_references(document)
        _emit_document(normalized, fmt, output, logger)
    except SliceError as e:
        _fail(ctx, e)


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    sys.exit(main())
