"""Seed database with demo data."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta

import aiosqlite


def _id() -> str:
    return secrets.token_hex(8)


def _days_from_now(days: int) -> str:
    return (datetime.now(UTC) + timedelta(days=days)).strftime("%Y-%m-%d %H:%M:%S")


async def seed_db(db: aiosqlite.Connection) -> None:
    """Seed a demo workspace with boards, cards and their searchable children."""

    # Check if already seeded
    cursor = await db.execute("SELECT COUNT(*) FROM users")
    row = await cursor.fetchone()
    if row[0] > 0:
        return

    # --- Users ---
    alice_id = _id()
    bob_id = _id()
    charlie_id = _id()
    await db.executemany(
        "INSERT INTO users (id, username, display_name) VALUES (?, ?, ?)",
        [
            (alice_id, "alice", "Alice Johnson"),
            (bob_id, "bob", "Bob Smith"),
            (charlie_id, "charlie", "Charlie Davis"),
        ],
    )

    # --- Workspace ---
    workspace_id = _id()
    await db.execute(
        "INSERT INTO workspaces (id, slug, name) VALUES (?, ?, ?)",
        (workspace_id, "acme", "Acme Product"),
    )
    await db.executemany(
        "INSERT INTO workspace_members (workspace_id, user_id, role) VALUES (?, ?, ?)",
        [
            (workspace_id, alice_id, "owner"),
            (workspace_id, bob_id, "admin"),
            (workspace_id, charlie_id, "member"),
        ],
    )

    label_bug = _id()
    label_feature = _id()
    await db.executemany(
        "INSERT INTO labels (id, workspace_id, name, color) VALUES (?, ?, ?, ?)",
        [
            (label_bug, workspace_id, "Bug", "#ef4444"),
            (label_feature, workspace_id, "Feature", "#22c55e"),
        ],
    )

    # --- Boards ---
    sprint_board = _id()
    roadmap_board = _id()
    await db.executemany(
        "INSERT INTO boards (id, workspace_id, name, description) VALUES (?, ?, ?, ?)",
        [
            (sprint_board, workspace_id, "Sprint Board", "Main development sprint board"),
            (roadmap_board, workspace_id, "Roadmap", "Quarterly planning and themes"),
        ],
    )

    # --- Cards ---
    card_planning = _id()
    card_login = _id()
    card_export = _id()
    await db.executemany(
        """INSERT INTO cards (id, board_id, title, description, position, due_at,
           is_completed, created_by)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        [
            (card_planning, sprint_board, "Sprint Planning", "Agree on the sprint goal",
             0, _days_from_now(1), 0, alice_id),
            (card_login, sprint_board, "Fix login redirect", "Users land on a blank page",
             1, _days_from_now(-2), 0, bob_id),
            (card_export, roadmap_board, "CSV export", "Export board data for the next sprint",
             0, None, 1, charlie_id),
        ],
    )
    await db.executemany(
        "INSERT INTO card_assignees (card_id, user_id) VALUES (?, ?)",
        [(card_planning, alice_id), (card_login, bob_id)],
    )
    await db.executemany(
        "INSERT INTO card_labels (card_id, label_id) VALUES (?, ?)",
        [(card_login, label_bug), (card_export, label_feature)],
    )

    # --- Comments, checklists, attachments ---
    await db.execute(
        "INSERT INTO card_comments (id, card_id, user_id, body) VALUES (?, ?, ?, ?)",
        (_id(), card_login, charlie_id, "Reproduced on Safari after the session expires"),
    )
    checklist_id = _id()
    await db.execute(
        "INSERT INTO card_checklists (id, card_id, title) VALUES (?, ?, ?)",
        (checklist_id, card_planning, "Planning prep"),
    )
    await db.executemany(
        "INSERT INTO card_checklist_items (id, checklist_id, body, position) VALUES (?, ?, ?, ?)",
        [
            (_id(), checklist_id, "Review velocity from last sprint", 0),
            (_id(), checklist_id, "Groom the backlog", 1),
        ],
    )
    await db.executemany(
        "INSERT INTO attachments (id, card_id, file_name, external_url) VALUES (?, ?, ?, ?)",
        [
            (_id(), card_export, "export-mockups.pdf", "https://docs.example.com/export-mockups"),
            (_id(), card_planning, "sprint-velocity.png", None),
        ],
    )

    await db.commit()
