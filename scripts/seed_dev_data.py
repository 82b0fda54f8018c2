"""Dev data seeder for the task board.

Usage:
    python seed_dev_data.py          # Create test data
    python seed_dev_data.py --clean  # Remove seeded test data

Designed to run from the backend/ directory (CWD) so taskboard imports resolve.
Saves created IDs to .vscode/.dev_seed_ids.json for cleanup.

Creates an admin (or reuses the configured superuser), two regular users, and
a demo board with labels, tasks, a comment and a pending invitation. Every
write goes through the board services, so the activity log is filled too.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Bootstrap: add backend/ to sys.path so `taskboard.*` imports work when
# invoked as `python ../scripts/seed_dev_data.py` from the backend/ directory.
# ---------------------------------------------------------------------------
BACKEND_DIR = Path(__file__).resolve().parent.parent / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import delete  # noqa: E402
from sqlmodel import select  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from taskboard.core.config import settings  # noqa: E402
from taskboard.core.security import Actor  # noqa: E402
from taskboard.db.session import AsyncSessionLocal  # noqa: E402
from taskboard.models.column import BoardColumn  # noqa: E402
from taskboard.models.project import Project  # noqa: E402
from taskboard.models.task import TaskStatus  # noqa: E402
from taskboard.models.user import User, UserRole  # noqa: E402
from taskboard.services import comments, invitations, labels, projects, tasks, users  # noqa: E402

STATE_FILE = Path(__file__).resolve().parent.parent / ".vscode" / ".dev_seed_ids.json"

SEED_PASSWORD = "changeme"


def _save_state(state: dict) -> None:
    STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
    STATE_FILE.write_text(json.dumps(state, indent=2))
    print(f"  State saved to {STATE_FILE}")


def _load_state() -> dict | None:
    if not STATE_FILE.exists():
        return None
    return json.loads(STATE_FILE.read_text())


def _actor(user: User) -> Actor:
    return Actor(id=user.id, role=user.role)


async def _find_or_create_admin(session: AsyncSession, state: dict) -> User:
    """Reuse the superuser created by init_db, or register a seeded admin."""
    if settings.FIRST_SUPERUSER_EMAIL:
        admin = await users.get_user_by_email(session, settings.FIRST_SUPERUSER_EMAIL)
        if admin is not None:
            return admin
    admin = await users.register_user(
        session,
        email="admin@example.com",
        password=SEED_PASSWORD,
        display_name="Admin User",
        role=UserRole.admin,
    )
    state["users"].append(admin.id)
    return admin


async def _column_ids(session: AsyncSession, project_id: int) -> list[int]:
    result = await session.exec(
        select(BoardColumn.id).where(BoardColumn.project_id == project_id).order_by(BoardColumn.position)
    )
    return list(result.all())


async def seed() -> None:
    if _load_state() is not None:
        print("Seed data already exists (.vscode/.dev_seed_ids.json found).")
        print("  Run with --clean first to remove existing data.")
        return

    print("Seeding dev data...")
    state: dict[str, list[int]] = {"users": [], "projects": []}

    async with AsyncSessionLocal() as session:
        async with session.begin():
            print("  Creating users...")
            admin = await _find_or_create_admin(session, state)
            owner = await users.register_user(
                session, email="user1@example.com", password=SEED_PASSWORD, display_name="Ada Owner"
            )
            member = await users.register_user(
                session, email="user2@example.com", password=SEED_PASSWORD, display_name="Max Member"
            )
            state["users"].extend([owner.id, member.id])
            owner_actor, member_actor = _actor(owner), _actor(member)

            print("  Creating demo board...")
            board = await projects.create_project(session, owner_actor, name="Demo Board")
            state["projects"].append(board.id)
            await projects.create_column(session, owner_actor, project_id=board.id, title="Review", position=3)
            todo_id, doing_id, review_id, done_id = await _column_ids(session, board.id)

            # The invited member joins through the same flow the API uses.
            invitation = await invitations.invite_member(
                session, owner_actor, project_id=board.id, email=member.email
            )
            await invitations.accept_invite(session, member_actor, token=invitation.token)
            await invitations.invite_member(session, owner_actor, project_id=board.id, email="pending@example.com")

            print("  Creating labels and tasks...")
            bug = await labels.create_label(session, owner_actor, project_id=board.id, name="bug", color="#D73A4A")
            await labels.create_label(session, owner_actor, project_id=board.id, name="feature", color="#0E8A16")

            login = await tasks.create_task(
                session, owner_actor, column_id=todo_id, title="Fix login redirect", assignee_id=member.id
            )
            await tasks.add_label(session, owner_actor, login.id, label_id=bug.id)
            await tasks.create_task(session, owner_actor, column_id=todo_id, title="Write onboarding guide")
            export = await tasks.create_task(session, member_actor, column_id=todo_id, title="CSV export")
            await tasks.move_task(session, member_actor, export.id, to_column_id=doing_id, to_position=1)
            await tasks.update_task(
                session, member_actor, export.id, changes={"status": TaskStatus.in_progress}
            )
            polish = await tasks.create_task(session, owner_actor, column_id=review_id, title="Polish empty states")
            await tasks.move_task(session, owner_actor, polish.id, to_column_id=done_id, to_position=1)
            await tasks.update_task(session, owner_actor, polish.id, changes={"status": TaskStatus.done})
            await comments.comment_task(session, member_actor, login.id, content="Reproduced on Firefox.")

            print("  Creating admin board...")
            admin_board = await projects.create_project(session, _actor(admin), name="Operations")
            state["projects"].append(admin_board.id)

        # Transaction committed

    _save_state(state)

    print("\nDone! Dev data seeded successfully.")
    print(f"  {len(state['users'])} users, {len(state['projects'])} projects")
    print(f"  Seeded users: user1@example.com, user2@example.com / {SEED_PASSWORD}")


async def clean() -> None:
    state = _load_state()
    if state is None:
        print("No seed state file found. Nothing to clean.")
        return

    print("Cleaning up seeded dev data...")

    async with AsyncSessionLocal() as session:
        async with session.begin():
            # Projects first: columns, tasks, labels, invitations and the
            # activity log go with them through ON DELETE CASCADE.
            if state.get("projects"):
                await session.execute(delete(Project).where(Project.id.in_(state["projects"])))
            print("  Removed projects")

            if state.get("users"):
                await session.execute(delete(User).where(User.id.in_(state["users"])))
            print("  Removed users")

        # Transaction committed

    STATE_FILE.unlink(missing_ok=True)
    print("Done! All seeded data removed.")


if __name__ == "__main__":
    if "--clean" in sys.argv:
        asyncio.run(clean())
    else:
        asyncio.run(seed())
