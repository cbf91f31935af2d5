"""Shared fixtures: a schema-loaded database and a small two-workspace corpus."""

from __future__ import annotations

from datetime import UTC, datetime

import aiosqlite
import pytest_asyncio

from corkboard.web.db.database import apply_schema, open_connection

# Fixed clock for due-date facets. Seeded due dates are relative to it.
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def db(tmp_path):
    """Create a test database with the full schema."""
    conn = await open_connection(str(tmp_path / "test.db"))
    await apply_schema(conn)

    yield conn

    await conn.close()


async def add_user(db: aiosqlite.Connection, user_id: str, display_name: str = "") -> None:
    await db.execute(
        "INSERT INTO users (id, username, display_name) VALUES (?, ?, ?)",
        (user_id, user_id, display_name),
    )


async def add_workspace(
    db: aiosqlite.Connection, workspace_id: str, slug: str, name: str, members: list[str]
) -> None:
    await db.execute(
        "INSERT INTO workspaces (id, slug, name) VALUES (?, ?, ?)", (workspace_id, slug, name)
    )
    for user_id in members:
        await db.execute(
            "INSERT INTO workspace_members (workspace_id, user_id) VALUES (?, ?)",
            (workspace_id, user_id),
        )


async def add_board(
    db: aiosqlite.Connection,
    board_id: str,
    workspace_id: str,
    name: str,
    description: str | None = None,
    archived: bool = False,
) -> None:
    await db.execute(
        "INSERT INTO boards (id, workspace_id, name, description, archived_at) VALUES (?, ?, ?, ?, ?)",
        (board_id, workspace_id, name, description, "2026-01-01 00:00:00" if archived else None),
    )


async def add_card(
    db: aiosqlite.Connection,
    card_id: str,
    board_id: str,
    title: str,
    description: str | None = None,
    due_at: str | None = None,
    completed: bool = False,
    archived: bool = False,
    assignees: tuple[str, ...] = (),
    labels: tuple[str, ...] = (),
) -> None:
    await db.execute(
        """INSERT INTO cards (id, board_id, title, description, due_at, is_completed, archived_at)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (
            card_id,
            board_id,
            title,
            description,
            due_at,
            int(completed),
            "2026-01-01 00:00:00" if archived else None,
        ),
    )
    for user_id in assignees:
        await db.execute(
            "INSERT INTO card_assignees (card_id, user_id) VALUES (?, ?)", (card_id, user_id)
        )
    for label_id in labels:
        await db.execute(
            "INSERT INTO card_labels (card_id, label_id) VALUES (?, ?)", (card_id, label_id)
        )


@pytest_asyncio.fixture
async def corpus(db):
    """Two workspaces with boards, cards and every kind of card child.

    alice belongs to acme and beta; bob and carol to acme only; dave to nothing.
    """
    await add_user(db, "alice", "Alice")
    await add_user(db, "bob", "Bob")
    await add_user(db, "carol0123456789")
    await add_user(db, "dave", "Dave")

    await add_workspace(db, "ws-acme", "acme", "Acme", ["alice", "bob", "carol0123456789"])
    await add_workspace(db, "ws-beta", "beta", "Beta", ["alice"])

    await db.executemany(
        "INSERT INTO labels (id, workspace_id, name, color) VALUES (?, ?, ?, ?)",
        [
            ("l-docs", "ws-acme", "Docs", "#0ea5e9"),
            ("l-bug", "ws-acme", "Bug", "#ef4444"),
        ],
    )

    await add_board(db, "b-plan", "ws-acme", "Sprint Planning", "Where the team plans each iteration")
    await add_board(db, "b-ops", "ws-acme", "Operations", "Two sprints ago we moved here")
    await add_board(db, "b-beta", "ws-beta", "Beta Launch")
    await add_board(db, "b-old", "ws-acme", "Sprint Graveyard", archived=True)

    await add_card(
        db, "c-overdue", "b-ops", "Release checklist review",
        due_at="2026-03-09 10:00:00", assignees=("alice",), labels=("l-bug",),
    )
    await add_card(
        db, "c-nextweek", "b-ops", "Release checklist",
        due_at="2026-03-14 10:00:00", assignees=("bob",),
    )
    await add_card(db, "c-done", "b-ops", "Retro notes", completed=True, labels=("l-docs",))
    await add_card(db, "c-beta", "b-beta", "Launch sprint kickoff")
    await add_card(db, "c-archived", "b-ops", "Sprint archived card", archived=True)

    await db.execute(
        "INSERT INTO card_comments (id, card_id, user_id, body) VALUES (?, ?, ?, ?)",
        ("cm-1", "c-done", "bob", "Sprint retro went well"),
    )
    await db.executemany(
        "INSERT INTO card_checklists (id, card_id, title) VALUES (?, ?, ?)",
        [("cl-1", "c-overdue", "Launch prep"), ("cl-2", "c-nextweek", "Release tasks")],
    )
    await db.executemany(
        "INSERT INTO card_checklist_items (id, checklist_id, body, position) VALUES (?, ?, ?, ?)",
        [
            ("ci-1", "cl-1", "Verify release notes", 0),
            ("ci-2", "cl-1", "Book the room", 1),
            ("ci-3", "cl-2", "Verify release notes", 0),
        ],
    )
    await db.execute(
        "INSERT INTO attachments (id, card_id, file_name, external_url) VALUES (?, ?, ?, ?)",
        ("at-1", "c-done", "sprint-report.pdf", "https://files.example.com/sprint-report.pdf"),
    )
    await db.commit()
    return db
