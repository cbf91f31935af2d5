"""Workspace and board scope for a viewer, plus facet picker options."""

from __future__ import annotations

import asyncio

import aiosqlite

from .models import LabelOption, MemberOption, SearchBootstrap, WorkspaceOption
from .types import BoardScopeRow, WorkspaceScope


def placeholders(values: list[str]) -> str:
    return ", ".join("?" for _ in values)


async def list_workspaces_for_viewer(db: aiosqlite.Connection, viewer_id: str) -> list[WorkspaceOption]:
    """Workspaces the viewer is a member of, ordered by name."""
    cursor = await db.execute(
        """SELECT w.id, w.slug, w.name FROM workspaces w
           JOIN workspace_members wm ON w.id = wm.workspace_id
           WHERE wm.user_id = ?
           ORDER BY w.name""",
        (viewer_id,),
    )
    rows = await cursor.fetchall()
    return [WorkspaceOption(id=r["id"], slug=r["slug"], name=r["name"]) for r in rows]


async def resolve_workspace_scope(
    db: aiosqlite.Connection, viewer_id: str, workspace_slug: str | None = None
) -> WorkspaceScope:
    """Resolve the searchable workspaces, optionally narrowed to one slug.

    A slug the viewer is not a member of yields an empty scope, not an error.
    """
    workspaces = await list_workspaces_for_viewer(db, viewer_id)
    workspace_by_id = {w.id: w for w in workspaces}

    slug = (workspace_slug or "").strip()
    if not slug:
        return WorkspaceScope(scoped_workspaces=workspaces, workspace_by_id=workspace_by_id)

    scoped = [w for w in workspaces if w.slug == slug]
    return WorkspaceScope(scoped_workspaces=scoped[:1], workspace_by_id=workspace_by_id)


async def load_board_scope(db: aiosqlite.Connection, workspace_ids: list[str]) -> list[BoardScopeRow]:
    """Non-archived boards in the given workspaces."""
    if not workspace_ids:
        return []

    cursor = await db.execute(
        f"""SELECT id, workspace_id, name, updated_at FROM boards
            WHERE workspace_id IN ({placeholders(workspace_ids)}) AND archived_at IS NULL""",
        workspace_ids,
    )
    rows = await cursor.fetchall()
    return [
        BoardScopeRow(
            id=r["id"], workspace_id=r["workspace_id"], name=r["name"], updated_at=r["updated_at"]
        )
        for r in rows
    ]


async def _load_member_options(
    db: aiosqlite.Connection, workspaces: list[WorkspaceOption]
) -> dict[str, list[MemberOption]]:
    if not workspaces:
        return {}

    slug_by_id = {w.id: w.slug for w in workspaces}
    workspace_ids = list(slug_by_id)
    cursor = await db.execute(
        f"""SELECT wm.workspace_id, wm.user_id, u.display_name, u.avatar_url
            FROM workspace_members wm
            LEFT JOIN users u ON wm.user_id = u.id
            WHERE wm.workspace_id IN ({placeholders(workspace_ids)})""",
        workspace_ids,
    )
    rows = await cursor.fetchall()

    grouped: dict[str, dict[str, MemberOption]] = {}
    for row in rows:
        slug = slug_by_id[row["workspace_id"]]
        members = grouped.setdefault(slug, {})
        if row["user_id"] in members:
            continue
        display_name = (row["display_name"] or "").strip() or f"user-{row['user_id'][:8]}"
        members[row["user_id"]] = MemberOption(
            id=row["user_id"], display_name=display_name, avatar_url=row["avatar_url"]
        )

    return {
        slug: sorted(members.values(), key=lambda m: m.display_name.lower())
        for slug, members in grouped.items()
    }


async def _load_label_options(
    db: aiosqlite.Connection, workspaces: list[WorkspaceOption]
) -> dict[str, list[LabelOption]]:
    if not workspaces:
        return {}

    slug_by_id = {w.id: w.slug for w in workspaces}
    workspace_ids = list(slug_by_id)
    cursor = await db.execute(
        f"""SELECT id, workspace_id, name, color FROM labels
            WHERE workspace_id IN ({placeholders(workspace_ids)})
            ORDER BY name""",
        workspace_ids,
    )
    grouped: dict[str, list[LabelOption]] = {}
    for row in await cursor.fetchall():
        grouped.setdefault(slug_by_id[row["workspace_id"]], []).append(
            LabelOption(id=row["id"], name=row["name"], color=row["color"])
        )
    return grouped


async def load_search_bootstrap(db: aiosqlite.Connection, viewer_id: str) -> SearchBootstrap:
    """Everything a client needs to render the facet pickers for this viewer."""
    scope = await resolve_workspace_scope(db, viewer_id)
    member_options, label_options = await asyncio.gather(
        _load_member_options(db, scope.scoped_workspaces),
        _load_label_options(db, scope.scoped_workspaces),
    )
    return SearchBootstrap(
        viewer_id=viewer_id,
        workspaces=scope.scoped_workspaces,
        member_options_by_workspace_slug=member_options,
        label_options_by_workspace_slug=label_options,
    )
