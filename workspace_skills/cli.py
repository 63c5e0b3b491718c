"""CLI entry point for workspace-skills."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Annotated, NoReturn

import httpx
import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from workspace_skills.config import (
    MissingCredentialError,
    SkillsConfig,
    load_config,
    resolve_secret,
)
from workspace_skills.config.loader import CONFIG_FILENAME, DEFAULT_CONFIG_TEMPLATE
from workspace_skills.docs import Comment, DocsClient, DocTab, normalize_requests
from workspace_skills.drive import DriveClient, DriveFile, SidecarNameError, parse_sidecar_name
from workspace_skills.imagegen import (
    GenerationError,
    GenerationOptions,
    ImageGenClient,
    generate_images,
)
from workspace_skills.logging_config import configure_logging
from workspace_skills.release import BUMP_TYPES, bump_manifest, tag_release
from workspace_skills.research import (
    CheckResult,
    InteractionStatus,
    InteractionsClient,
    check_task,
    poll_task,
    start_task,
)
from workspace_skills.transport import (
    ApiError,
    GoogleApiClient,
    api_key_headers,
    bearer_headers,
)

app = typer.Typer(
    name="workspace-skills",
    help="Command-line tools for Google Docs, Drive, deep research and image generation.",
)

config_app = typer.Typer(help="Manage workspace-skills configuration.")
app.add_typer(config_app, name="config")

research_app = typer.Typer(help="Start and track deep research interactions.")
app.add_typer(research_app, name="research")

docs_app = typer.Typer(help="Read, edit and comment on Google Docs.")
app.add_typer(docs_app, name="docs")

drive_app = typer.Typer(help="Download, upload and search Google Drive files.")
app.add_typer(drive_app, name="drive")

release_app = typer.Typer(help="Bump the extension version and tag the release.")
app.add_typer(release_app, name="release")

image_app = typer.Typer(help="Generate images from text and image prompts.")

err_console = Console(stderr=True)

# Errors every network command reports the same way
_REQUEST_ERRORS = (ApiError, httpx.HTTPError, ValueError, OSError)

# Global state
_config: SkillsConfig | None = None
# Transport override for the httpx clients; tests swap in httpx.MockTransport
_transport: httpx.AsyncBaseTransport | None = None


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)


def _load_config(path: str | None = None) -> SkillsConfig:
    try:
        cfg = load_config(path)
    except ValueError as e:
        _fail(str(e))
    configure_logging(cfg.log_level, cfg.log_format)
    return cfg


def _get_config() -> SkillsConfig:
    global _config
    if _config is None:
        _config = _load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help=f"Path to {CONFIG_FILENAME}")
    ] = None,
) -> None:
    """Global options."""
    global _config
    _config = _load_config(config)


def _secret(env_name: str) -> str:
    try:
        return resolve_secret(env_name)
    except MissingCredentialError as e:
        _fail(str(e))


def _google_api(headers: dict[str, str]) -> GoogleApiClient:
    cfg = _get_config()
    return GoogleApiClient(
        headers,
        timeout=cfg.http.timeout,
        max_redirects=cfg.http.max_redirects,
        transport=_transport,
    )


def _echo_json(data: object) -> None:
    typer.echo(json.dumps(data, indent=2))


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    import yaml

    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default workspace-skills.yaml in current directory."""
    target = Path(CONFIG_FILENAME)
    if target.exists() and not force:
        rprint(f"[yellow]{CONFIG_FILENAME} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


# ---------------------------------------------------------------------------
# Deep research
# ---------------------------------------------------------------------------


def _research_client(api: GoogleApiClient) -> InteractionsClient:
    return InteractionsClient(api, _get_config().research)


@research_app.command()
def start(
    filename: str = typer.Argument(..., help="Task file to create"),
    prompt: list[str] = typer.Argument(..., help="Research prompt"),
    model: str | None = typer.Option(None, "--model", help="Deep research agent"),
) -> None:
    """Start a background research interaction and record it in FILENAME."""
    headers = api_key_headers(_secret(_get_config().research.api_key_env))
    text = " ".join(prompt).strip()
    if not text:
        _fail("A research prompt is required.")

    async def _run():
        async with _google_api(headers) as api:
            return await start_task(_research_client(api), filename, text, model)

    try:
        record = asyncio.run(_run())
    except _REQUEST_ERRORS as e:
        _fail(f"Request failed: {e}")

    rprint(
        f"[green]Research started.[/green] Interaction ID: {escape(record.interaction_id)}. "
        f"Saved to {escape(filename)}"
    )


@research_app.command()
def check(
    filename: str = typer.Argument(..., help="Task file written by 'start'"),
) -> None:
    """Check a research task once and save the result when it is done."""
    headers = api_key_headers(_secret(_get_config().research.api_key_env))

    async def _run() -> CheckResult:
        async with _google_api(headers) as api:
            return await check_task(_research_client(api), filename)

    try:
        result = asyncio.run(_run())
    except _REQUEST_ERRORS as e:
        _fail(f"Check failed: {e}")

    typer.echo(f"Status: {result.server_status}")
    if result.status is InteractionStatus.completed:
        rprint(f"[green]Research complete![/green] Result saved to {escape(filename)}")
    elif result.status is InteractionStatus.failed:
        _fail("Research failed.")


@research_app.command()
def poll(
    filename: str = typer.Argument(..., help="Task file written by 'start'"),
    interval: int | None = typer.Argument(None, help="Seconds between checks"),
) -> None:
    """Check a research task repeatedly until it completes or fails."""
    cfg = _get_config()
    headers = api_key_headers(_secret(cfg.research.api_key_env))
    seconds = interval if interval is not None else cfg.research.poll_interval
    if seconds < 0:
        _fail("Interval must be zero or more seconds.")

    rprint(f"Polling {escape(filename)} every {seconds} seconds...")

    def _progress(result: CheckResult) -> None:
        stamp = datetime.now().strftime("%H:%M:%S")
        rprint(f"[dim]\\[{stamp}][/dim] Status: {escape(result.server_status)}...")

    async def _run() -> InteractionStatus:
        async with _google_api(headers) as api:
            return await poll_task(_research_client(api), filename, seconds, _progress)

    status = asyncio.run(_run())
    if status is InteractionStatus.completed:
        rprint("[green]Research completed.[/green]")
    elif status is InteractionStatus.failed:
        _fail("Research failed.")
    else:
        _fail("An error occurred during polling.")


# ---------------------------------------------------------------------------
# Google Docs
# ---------------------------------------------------------------------------


def _workspace_headers(token_env: str) -> dict[str, str]:
    return bearer_headers(_secret(token_env))


def _docs_client(api: GoogleApiClient) -> DocsClient:
    cfg = _get_config()
    return DocsClient(api, DriveClient(api, cfg.drive), cfg.docs)


def _run_docs(operation):
    """Run ``operation(DocsClient)`` against a fresh client and return its result."""
    headers = _workspace_headers(_get_config().docs.token_env)

    async def _run():
        async with _google_api(headers) as api:
            return await operation(_docs_client(api))

    try:
        return asyncio.run(_run())
    except _REQUEST_ERRORS as e:
        _fail(str(e))


@docs_app.command("read")
def docs_read(
    doc_id: str = typer.Argument(..., help="Document ID"),
    tabs_content: bool = typer.Option(
        False, "--tabs-content", help="Include the content of every tab"
    ),
) -> None:
    """Print a document as JSON."""
    _echo_json(_run_docs(lambda docs: docs.read(doc_id, include_tabs_content=tabs_content)))


def _display_tabs(doc_id: str, tabs: list[DocTab]) -> None:
    tree = Tree(f"[bold]Tabs[/bold] ({len(tabs)}) of {escape(doc_id)}")
    branches: dict[str, Tree] = {}
    for tab in tabs:
        parent = branches.get(tab.parent_tab_id or "", tree)
        label = f"[cyan]{escape(tab.title or '(untitled)')}[/cyan] [dim]{escape(tab.tab_id)}[/dim]"
        branches[tab.tab_id] = parent.add(label)
    rprint(tree)


@docs_app.command("tabs")
def docs_tabs(
    doc_id: str = typer.Argument(..., help="Document ID"),
    as_json: bool = typer.Option(False, "--json", help="Print the flat tab list as JSON"),
) -> None:
    """List the tabs of a document."""
    tabs = _run_docs(lambda docs: docs.tabs(doc_id))
    if as_json:
        _echo_json([t.model_dump() for t in tabs])
        return
    if not tabs:
        rprint("[yellow]No tabs found.[/yellow]")
        return
    _display_tabs(doc_id, tabs)


@docs_app.command("create")
def docs_create(
    title: str = typer.Argument("Untitled Document", help="Document title"),
) -> None:
    """Create an empty document."""
    _echo_json(_run_docs(lambda docs: docs.create(title)))


@docs_app.command("edit")
def docs_edit(
    doc_id: str = typer.Argument(..., help="Document ID"),
    requests_json: str = typer.Argument(..., help="batchUpdate requests as JSON"),
) -> None:
    """Apply batchUpdate requests (a list, {requests: [...]}, or one request)."""
    try:
        requests = normalize_requests(requests_json)
    except ValueError as e:
        _fail(str(e))
    _echo_json(_run_docs(lambda docs: docs.edit(doc_id, requests)))


def _display_comments(comments: list[Comment]) -> None:
    table = Table(title=f"Comments ({len(comments)})")
    table.add_column("ID", style="cyan")
    table.add_column("Author", style="green")
    table.add_column("Status", justify="center")
    table.add_column("Comment")
    table.add_column("Replies", justify="right")
    for c in comments:
        status = "[dim]resolved[/dim]" if c.resolved else "[yellow]open[/yellow]"
        text = escape(c.content)
        if c.quoted_text:
            text = f"[dim]> {escape(c.quoted_text)}[/dim]\n{text}"
        for r in c.replies:
            if r.content:
                text += f"\n  [dim]{escape(r.author.display_name)}:[/dim] {escape(r.content)}"
        table.add_row(c.id, escape(c.author.display_name), status, text, str(len(c.replies)))
    rprint(table)


@docs_app.command("comments")
def docs_comments(
    doc_id: str = typer.Argument(..., help="Document ID"),
    as_json: bool = typer.Option(False, "--json", help="Print raw comments as JSON"),
) -> None:
    """List comments and replies on a document."""
    comments = _run_docs(lambda docs: docs.comments(doc_id))
    if as_json:
        _echo_json([c.model_dump(by_alias=True, exclude_none=True) for c in comments])
        return
    if not comments:
        rprint("[yellow]No comments found.[/yellow]")
        return
    _display_comments(comments)


@docs_app.command("create_comment")
def docs_create_comment(
    doc_id: str = typer.Argument(..., help="Document ID"),
    content: str = typer.Argument(..., help="Comment text"),
    quote: str | None = typer.Option(None, "--quote", help="Document text the comment refers to"),
) -> None:
    """Add a comment to a document."""
    _echo_json(_run_docs(lambda docs: docs.create_comment(doc_id, content, quote)))


@docs_app.command("reply_comment")
def docs_reply_comment(
    doc_id: str = typer.Argument(..., help="Document ID"),
    comment_id: str = typer.Argument(..., help="Comment ID"),
    content: str = typer.Argument(..., help="Reply text"),
) -> None:
    """Reply to a comment."""
    _echo_json(_run_docs(lambda docs: docs.reply_comment(doc_id, comment_id, content)))


@docs_app.command("resolve_comment")
def docs_resolve_comment(
    doc_id: str = typer.Argument(..., help="Document ID"),
    comment_id: str = typer.Argument(..., help="Comment ID"),
    message: str | None = typer.Option(None, "--message", "-m", help="Closing reply text"),
) -> None:
    """Mark a comment as resolved."""
    _echo_json(_run_docs(lambda docs: docs.resolve_comment(doc_id, comment_id, message)))


@docs_app.command("insert_image")
def docs_insert_image(
    doc_id: str = typer.Argument(..., help="Document ID"),
    image_path: str = typer.Argument(..., help="Local image file"),
    index: int | None = typer.Option(None, "--index", min=1, help="Insert position (default: end)"),
    width: float | None = typer.Option(None, "--width", help="Width in points"),
    height: float | None = typer.Option(None, "--height", help="Height in points"),
    keep_upload: bool = typer.Option(
        False, "--keep-upload", help="Keep the Drive copy used to host the image"
    ),
) -> None:
    """Upload a local image through Drive and insert it into a document."""
    if not Path(image_path).is_file():
        _fail(f"Image not found: {image_path}")
    _echo_json(
        _run_docs(
            lambda docs: docs.insert_image(
                doc_id,
                image_path,
                index=index,
                width=width,
                height=height,
                keep_upload=keep_upload,
            )
        )
    )


# ---------------------------------------------------------------------------
# Google Drive
# ---------------------------------------------------------------------------


def _run_drive(operation):
    """Run ``operation(DriveClient)`` against a fresh client and return its result."""
    cfg = _get_config()
    headers = _workspace_headers(cfg.drive.token_env)

    async def _run():
        async with _google_api(headers) as api:
            return await operation(DriveClient(api, cfg.drive))

    try:
        return asyncio.run(_run())
    except _REQUEST_ERRORS as e:
        _fail(str(e))


@drive_app.command("download")
def drive_download(
    file_id: str = typer.Argument(..., help="Drive file ID"),
    fmt: str | None = typer.Argument(
        None, metavar="FORMAT", help="Export MIME type, e.g. application/pdf"
    ),
) -> None:
    """Download a file, exporting Workspace documents to FORMAT."""
    result = _run_drive(lambda drive: drive.download(file_id, fmt))
    rprint(
        f"Downloaded '{escape(result.file.name)}' ({escape(result.file.id)}) "
        f"to '{escape(result.path)}'"
    )
    rprint("[green]Download complete.[/green]")


@drive_app.command("refresh")
def drive_refresh(
    file_path: str = typer.Argument(..., help="Local file named Name.ID.ext"),
) -> None:
    """Re-download a previously downloaded file in place."""
    _secret(_get_config().drive.token_env)
    try:
        file_id, _ = parse_sidecar_name(file_path)
    except SidecarNameError as e:
        _fail(f"{e} Cannot refresh.")

    rprint(f"Refreshing file with ID: {escape(file_id)}")
    result = _run_drive(lambda drive: drive.refresh(file_path))
    rprint(f"[green]Refreshed[/green] {escape(result.path)}")


@drive_app.command("upload")
def drive_upload(
    file_path: str = typer.Argument(..., help="Local file to upload"),
    parent: str | None = typer.Option(None, "--parent", help="Destination folder ID"),
    name: str | None = typer.Option(None, "--name", help="Remote file name"),
    rename: bool = typer.Option(
        True, "--rename/--no-rename", help="Rename the local file to Name.ID.ext"
    ),
) -> None:
    """Upload a new file to Drive."""
    if not Path(file_path).is_file():
        _fail(f"File not found: {file_path}")
    result = _run_drive(
        lambda drive: drive.upload(file_path, parent_id=parent, name=name, rename=rename)
    )
    rprint(f"[green]Uploaded[/green] '{escape(result.file.name)}' ({escape(result.file.id)})")
    if result.renamed:
        rprint(f"Local file renamed to {escape(result.local_path)}")


@drive_app.command("update")
def drive_update(
    file_path: str = typer.Argument(..., help="Local file named Name.ID.ext"),
) -> None:
    """Replace a Drive file's content with a local file."""
    _secret(_get_config().drive.token_env)
    try:
        file_id, _ = parse_sidecar_name(file_path)
    except SidecarNameError as e:
        _fail(f"{e} Cannot update.")

    rprint(f"Updating file with ID: {escape(file_id)}")
    file = _run_drive(lambda drive: drive.update(file_path))
    rprint(f"[green]Updated[/green] '{escape(file.name)}' ({escape(file.id)})")


def _display_files(files: list[DriveFile]) -> None:
    table = Table(title=f"Files ({len(files)})")
    table.add_column("Name", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="green")
    table.add_column("Modified")
    for f in files:
        table.add_row(
            escape(f.name),
            f.id,
            escape(f.mime_type),
            (f.modified_time or "-")[:19],
        )
    rprint(table)


@drive_app.command("search")
def drive_search(
    query: str = typer.Argument(..., help="Text to match in file names"),
    limit: int | None = typer.Option(None, "--limit", min=1, help="Maximum results"),
    raw: bool = typer.Option(False, "--raw", help="Treat QUERY as a Drive q expression"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
) -> None:
    """Search Drive, following result pages."""
    files = _run_drive(lambda drive: drive.search(query, limit=limit, raw=raw))
    if as_json:
        _echo_json([f.model_dump(by_alias=True, exclude_none=True) for f in files])
        return
    if not files:
        rprint("[yellow]No files found.[/yellow]")
        return
    _display_files(files)


# ---------------------------------------------------------------------------
# Image generation
# ---------------------------------------------------------------------------


def generate_image(
    inputs: list[str] = typer.Argument(..., help="Text prompts and image paths, in order"),
    model: str | None = typer.Option(None, "--model", help="Image model"),
    aspect_ratio: str | None = typer.Option(None, "--aspectRatio", "--ar", help="e.g. 16:9"),
    count: int | None = typer.Option(None, "--count", min=1, help="Number of candidates"),
    seed: int | None = typer.Option(None, "--seed", help="Sampling seed"),
    image_size: str | None = typer.Option(None, "--imageSize", help="e.g. 1K, 2K"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output file or directory"),
    google_search: bool = typer.Option(False, "--googleSearch", help="Ground with Google Search"),
) -> None:
    """Generate images from text prompts and input images."""
    cfg = _get_config()
    headers = api_key_headers(_secret(cfg.image.api_key_env))
    options = GenerationOptions(
        model=model or cfg.image.model,
        aspect_ratio=aspect_ratio,
        count=count,
        seed=seed,
        image_size=image_size,
        google_search=google_search,
    )

    def _on_image(path: Path) -> None:
        rprint(f"Image saved as {escape(str(path))}")

    async def _run():
        async with _google_api(headers) as api:
            return await generate_images(
                ImageGenClient(api, cfg.image),
                inputs,
                options,
                output=output,
                on_text=typer.echo,
                on_image=_on_image,
            )

    try:
        result = asyncio.run(_run())
    except GenerationError as e:
        _fail(str(e))
    except _REQUEST_ERRORS as e:
        _fail(f"Problem with request: {e}")

    if not result.images:
        rprint("[yellow]No images returned.[/yellow]")


app.command("image")(generate_image)
image_app.command()(generate_image)


# ---------------------------------------------------------------------------
# Release
# ---------------------------------------------------------------------------


@release_app.command("bump")
def release_bump(
    bump_type: str = typer.Argument("patch", help="major, minor or patch"),
    manifest: str | None = typer.Option(None, "--manifest", help="JSON manifest with a version field"),
    git: bool = typer.Option(True, "--git/--no-git", help="Commit and tag the release"),
) -> None:
    """Bump the manifest version, then commit and tag it."""
    cfg = _get_config()
    kind = bump_type.lower()
    if kind not in BUMP_TYPES:
        _fail(f'Invalid bump type "{bump_type}". Must be one of: {", ".join(BUMP_TYPES)}')

    path = Path(manifest or cfg.release.manifest)
    try:
        version = bump_manifest(path, kind)
    except (ValueError, OSError) as e:
        _fail(f"Error bumping version: {e}")

    rprint(f"Bumped version to [bold]{version}[/bold] ({kind})")
    if not git:
        return
    tag = f"{cfg.release.tag_prefix}{version}"
    if tag_release(path, version, cfg.release.tag_prefix):
        rprint(f"[green]Successfully tagged[/green] {escape(tag)}")
    else:
        err_console.print("[yellow]Git operations failed; the manifest was still updated.[/yellow]")


if __name__ == "__main__":
    app()
