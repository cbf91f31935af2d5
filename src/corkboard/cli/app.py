"""Main CLI application using Typer."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Annotated, Optional
from urllib.parse import urlencode

import typer

from ..web.config import WebConfig
from ..web.search.filters import filter_state_to_params, parse_filter_state
from .output import console, print_error, print_info, print_search_results, print_success

app = typer.Typer(
    name="corkboard",
    help="Workspace search over boards, cards, comments, checklists and attachments",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


@app.command("serve")
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Bind address (default: CORKBOARD_HOST)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port (default: CORKBOARD_PORT)"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", help="Reload on code changes"),
    ] = False,
):
    """Run the search HTTP API."""
    import uvicorn

    config = WebConfig.load()
    _configure_logging(config.log_level)

    uvicorn.run(
        "corkboard.web.app:create_app",
        factory=True,
        host=host or config.host,
        port=port or config.port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


@app.command("search")
def search(
    query: Annotated[str, typer.Argument(help="Search text (at least 2 characters)")],
    user: Annotated[str, typer.Option("--user", "-u", help="Viewer user id")],
    workspace: Annotated[
        Optional[str],
        typer.Option("--workspace", "-w", help="Restrict to a workspace slug"),
    ] = None,
    entity_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="board, card, comment, checklist or attachment"),
    ] = None,
    match: Annotated[
        Optional[str],
        typer.Option("--match", help="Combine facets with 'any' or 'all'"),
    ] = None,
    members: Annotated[
        Optional[str],
        typer.Option("--members", help="Comma-separated member ids ('me', 'none')"),
    ] = None,
    labels: Annotated[
        Optional[str],
        typer.Option("--labels", help="Comma-separated label ids ('none')"),
    ] = None,
    due: Annotated[
        Optional[str],
        typer.Option("--due", help="Comma-separated due buckets, e.g. overdue,due-tomorrow"),
    ] = None,
    status: Annotated[
        Optional[str],
        typer.Option("--status", help="completed and/or not-completed"),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Page size (1-50)"),
    ] = 20,
    cursor: Annotated[
        Optional[str],
        typer.Option("--cursor", help="Cursor from a previous page"),
    ] = None,
    db_path: Annotated[
        Optional[str],
        typer.Option("--db", help="Database path (default: CORKBOARD_DB_PATH)"),
    ] = None,
):
    """Run a workspace search against the local database.

    Examples:
        corkboard search "sprint" -u 3f2a...
        corkboard search "login" -u 3f2a... --members me --status not-completed
        corkboard search "report" -u 3f2a... -t attachment --cursor eyJvZmZzZXQiOjIwfQ
    """
    config = WebConfig.load()
    _configure_logging(config.log_level)

    params = {
        "q": query,
        "workspace": workspace,
        "type": entity_type,
        "match": match,
        "members": members,
        "labels": labels,
        "due": due,
        "status": status,
    }

    try:
        response = asyncio.run(
            _run_search(db_path or config.db_path, user, params, limit=limit, cursor=cursor)
        )
    except Exception as e:
        print_error(str(e))
        raise typer.Exit(1)

    shareable = filter_state_to_params(parse_filter_state(params))
    if not response.items:
        print_info("No results")
    else:
        print_search_results(response, title=f"Results for {query!r}")
    console.print(f"[dim]/w/search?{urlencode(shareable)}[/dim]")
    if response.applied_filters.boards_hidden_by_card_filters:
        print_info("Board matches are hidden while card filters are active")
    if response.next_cursor:
        print_info(f"More results: --cursor {response.next_cursor}")


async def _run_search(db_path: str, viewer_id: str, params: dict, *, limit: int, cursor: str | None):
    from ..web.db.database import close_db, get_db, init_db
    from ..web.search.service import search_workspace_content

    await init_db(db_path)
    try:
        return await search_workspace_content(
            await get_db(), viewer_id, params, limit=limit, cursor=cursor
        )
    finally:
        await close_db()


@app.command("seed")
def seed(
    db_path: Annotated[
        Optional[str],
        typer.Option("--db", help="Database path (default: CORKBOARD_DB_PATH)"),
    ] = None,
):
    """Create the schema and load the demo workspace."""
    config = WebConfig.load()
    _configure_logging(config.log_level)
    asyncio.run(_run_seed(db_path or config.db_path))
    print_success(f"Seeded {db_path or config.db_path}")


async def _run_seed(db_path: str) -> None:
    from ..web.db.database import close_db, get_db, init_db
    from ..web.db.seed import seed_db

    await init_db(db_path)
    try:
        await seed_db(await get_db())
    finally:
        await close_db()


@app.command("token")
def token(
    user_id: Annotated[str, typer.Argument(help="User id to issue the token for")],
    username: Annotated[str, typer.Option("--username", help="Username claim")] = "",
):
    """Issue a bearer token for the API (uses CORKBOARD_JWT_SECRET)."""
    from ..web.auth.service import configure, create_token

    if not os.environ.get("CORKBOARD_JWT_SECRET"):
        print_error(
            "CORKBOARD_JWT_SECRET is not set; the server would reject a token signed with a throwaway secret."
        )
        raise typer.Exit(1)

    configure(WebConfig.load())
    console.print(create_token(user_id, username), soft_wrap=True)


if __name__ == "__main__":
    app()
