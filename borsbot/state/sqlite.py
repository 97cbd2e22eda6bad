"""
SQLite-backed build store.

Builds are never deleted; finished builds stay in the table for auditing.
Queries run in a worker thread so a slow or locked database file does not
stall the event loop.
"""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
import sqlite3

from borsbot.core.exceptions import StoreError
from borsbot.core.logging import get_logger
from borsbot.models.build import BuildStatus, TryBuild
from borsbot.models.github import GithubRepoName
from borsbot.state.builds import check_transition

logger = get_logger(__name__)

_BUILD_COLUMNS = (
    "id, repo_full_name, pr_number, branch_name, commit_sha, requested_by, "
    "status, created_at, updated_at"
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteBuildStore:
    """Build store persisted in a local SQLite database."""

    def __init__(self, db_path: Path | str):
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open build database {self._db_path}: {e}") from e
        try:
            conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"Build database error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS try_builds (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    repo_full_name TEXT NOT NULL,
                    pr_number INTEGER NOT NULL,
                    branch_name TEXT NOT NULL,
                    commit_sha TEXT NOT NULL,
                    requested_by TEXT NOT NULL,
                    status TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS try_build_external_ids (
                    build_id INTEGER NOT NULL REFERENCES try_builds(id),
                    external_id TEXT NOT NULL,
                    PRIMARY KEY (build_id, external_id)
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS try_builds_by_pr
                ON try_builds (repo_full_name, pr_number)
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS try_builds_by_commit
                ON try_builds (repo_full_name, branch_name, commit_sha)
                """
            )

    async def create_try_build(
        self,
        repository: GithubRepoName,
        pr_number: int,
        branch_name: str,
        commit_sha: str,
        requested_by: str,
    ) -> TryBuild:
        def _create() -> TryBuild:
            now = _now_iso()
            with self._connect() as conn:
                active = self._find_active(conn, repository, pr_number)
                if active is not None:
                    raise StoreError(
                        f"PR {repository}#{pr_number} already has active try build {active.id}"
                    )
                cursor = conn.execute(
                    """
                    INSERT INTO try_builds (
                        repo_full_name, pr_number, branch_name, commit_sha,
                        requested_by, status, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(repository),
                        pr_number,
                        branch_name,
                        commit_sha,
                        requested_by,
                        BuildStatus.PENDING.value,
                        now,
                        now,
                    ),
                )
                return self._get(conn, cursor.lastrowid)

        build = await asyncio.to_thread(_create)
        logger.debug(f"Stored try build {build.id} for {repository}#{pr_number}")
        return build

    async def find_active_try_build(
        self, repository: GithubRepoName, pr_number: int
    ) -> TryBuild | None:
        def _find() -> TryBuild | None:
            with self._connect() as conn:
                return self._find_active(conn, repository, pr_number)

        return await asyncio.to_thread(_find)

    async def find_try_build(
        self, repository: GithubRepoName, branch_name: str, commit_sha: str
    ) -> TryBuild | None:
        def _find() -> TryBuild | None:
            with self._connect() as conn:
                row = conn.execute(
                    f"""
                    SELECT {_BUILD_COLUMNS}
                    FROM try_builds
                    WHERE repo_full_name = ? AND branch_name = ? AND commit_sha = ?
                    ORDER BY id DESC
                    LIMIT 1
                    """,
                    (str(repository), branch_name, commit_sha),
                ).fetchone()
                return self._row_to_build(conn, row) if row is not None else None

        return await asyncio.to_thread(_find)

    async def update_build_status(
        self, build: TryBuild, status: BuildStatus, external_id: str | None = None
    ) -> TryBuild:
        def _update() -> TryBuild:
            with self._connect() as conn:
                current = self._get(conn, build.id)
                check_transition(current, status)
                conn.execute(
                    "UPDATE try_builds SET status = ?, updated_at = ? WHERE id = ?",
                    (status.value, _now_iso(), build.id),
                )
                if external_id is not None:
                    conn.execute(
                        """
                        INSERT OR IGNORE INTO try_build_external_ids (build_id, external_id)
                        VALUES (?, ?)
                        """,
                        (build.id, external_id),
                    )
                return self._get(conn, build.id)

        return await asyncio.to_thread(_update)

    async def get_try_builds(self, repository: GithubRepoName, pr_number: int) -> list[TryBuild]:
        def _list() -> list[TryBuild]:
            with self._connect() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_BUILD_COLUMNS}
                    FROM try_builds
                    WHERE repo_full_name = ? AND pr_number = ?
                    ORDER BY id ASC
                    """,
                    (str(repository), pr_number),
                ).fetchall()
                return [self._row_to_build(conn, row) for row in rows]

        return await asyncio.to_thread(_list)

    def _find_active(
        self, conn: sqlite3.Connection, repository: GithubRepoName, pr_number: int
    ) -> TryBuild | None:
        row = conn.execute(
            f"""
            SELECT {_BUILD_COLUMNS}
            FROM try_builds
            WHERE repo_full_name = ? AND pr_number = ? AND status IN (?, ?)
            ORDER BY id DESC
            LIMIT 1
            """,
            (str(repository), pr_number, BuildStatus.PENDING.value, BuildStatus.RUNNING.value),
        ).fetchone()
        return self._row_to_build(conn, row) if row is not None else None

    def _get(self, conn: sqlite3.Connection, build_id: int) -> TryBuild:
        row = conn.execute(
            f"SELECT {_BUILD_COLUMNS} FROM try_builds WHERE id = ?",
            (build_id,),
        ).fetchone()
        if row is None:
            raise StoreError(f"Try build {build_id} does not exist")
        return self._row_to_build(conn, row)

    def _row_to_build(self, conn: sqlite3.Connection, row: tuple) -> TryBuild:
        (
            build_id,
            repo_full_name,
            pr_number,
            branch_name,
            commit_sha,
            requested_by,
            status,
            created_at,
            updated_at,
        ) = row
        external_ids = conn.execute(
            "SELECT external_id FROM try_build_external_ids WHERE build_id = ?",
            (build_id,),
        ).fetchall()
        return TryBuild(
            id=int(build_id),
            repository=GithubRepoName.parse(repo_full_name),
            pr_number=int(pr_number),
            branch_name=branch_name,
            commit_sha=commit_sha,
            requested_by=requested_by,
            status=BuildStatus(status),
            created_at=datetime.fromisoformat(created_at),
            updated_at=datetime.fromisoformat(updated_at),
            external_build_ids=frozenset(external_id for (external_id,) in external_ids),
        )
