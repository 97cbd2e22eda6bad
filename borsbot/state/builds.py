"""
Storage for try builds.
"""

import dataclasses
from datetime import datetime, timezone
from typing import Protocol

from borsbot.core.exceptions import StoreError
from borsbot.models.build import BuildStatus, TryBuild
from borsbot.models.github import GithubRepoName


class BuildStore(Protocol):
    """Persistence contract for try builds."""

    async def create_try_build(
        self,
        repository: GithubRepoName,
        pr_number: int,
        branch_name: str,
        commit_sha: str,
        requested_by: str,
    ) -> TryBuild: ...

    async def find_active_try_build(
        self, repository: GithubRepoName, pr_number: int
    ) -> TryBuild | None: ...

    async def find_try_build(
        self, repository: GithubRepoName, branch_name: str, commit_sha: str
    ) -> TryBuild | None: ...

    async def update_build_status(
        self, build: TryBuild, status: BuildStatus, external_id: str | None = None
    ) -> TryBuild: ...

    async def get_try_builds(self, repository: GithubRepoName, pr_number: int) -> list[TryBuild]: ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


def check_transition(current: TryBuild, status: BuildStatus) -> None:
    """Reject any status change of a build that already finished."""
    if current.status.is_terminal and status != current.status:
        raise StoreError(
            f"Try build {current.id} is {current.status.value} and cannot become {status.value}"
        )


class InMemoryBuildStore:
    """Dict-backed build store, used when no database is configured."""

    def __init__(self):
        self._builds: dict[int, TryBuild] = {}
        self._next_id = 1

    async def create_try_build(
        self,
        repository: GithubRepoName,
        pr_number: int,
        branch_name: str,
        commit_sha: str,
        requested_by: str,
    ) -> TryBuild:
        """Add a pending build."""
        active = await self.find_active_try_build(repository, pr_number)
        if active is not None:
            raise StoreError(f"PR {repository}#{pr_number} already has active try build {active.id}")

        now = _now()
        build = TryBuild(
            id=self._next_id,
            repository=repository,
            pr_number=pr_number,
            branch_name=branch_name,
            commit_sha=commit_sha,
            requested_by=requested_by,
            status=BuildStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self._builds[build.id] = build
        self._next_id += 1
        return build

    async def find_active_try_build(
        self, repository: GithubRepoName, pr_number: int
    ) -> TryBuild | None:
        for build in self._builds.values():
            if build.repository == repository and build.pr_number == pr_number and build.is_active:
                return build
        return None

    async def find_try_build(
        self, repository: GithubRepoName, branch_name: str, commit_sha: str
    ) -> TryBuild | None:
        """Get the most recent build of a commit on a branch."""
        matches = [
            build
            for build in self._builds.values()
            if build.repository == repository
            and build.branch_name == branch_name
            and build.commit_sha == commit_sha
        ]
        return max(matches, key=lambda build: build.id, default=None)

    async def update_build_status(
        self, build: TryBuild, status: BuildStatus, external_id: str | None = None
    ) -> TryBuild:
        current = self._builds.get(build.id)
        if current is None:
            raise StoreError(f"Try build {build.id} does not exist")
        check_transition(current, status)

        external_ids = current.external_build_ids
        if external_id is not None:
            external_ids = external_ids | {external_id}
        updated = dataclasses.replace(
            current, status=status, external_build_ids=external_ids, updated_at=_now()
        )
        self._builds[build.id] = updated
        return updated

    async def get_try_builds(self, repository: GithubRepoName, pr_number: int) -> list[TryBuild]:
        """Get every build of a pull request, oldest first."""
        return [
            build
            for build in sorted(self._builds.values(), key=lambda build: build.id)
            if build.repository == repository and build.pr_number == pr_number
        ]

    def __len__(self) -> int:
        return len(self._builds)
