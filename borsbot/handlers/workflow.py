"""
CI workflow and check suite event handlers.

All handlers are idempotent: repeated or late deliveries for a finished build
change nothing and post nothing.
"""

from borsbot.core.logging import get_logger
from borsbot.handlers.trybuild import TRY_BRANCH_NAME
from borsbot.models.build import BuildStatus, TryBuild
from borsbot.models.events import CheckSuiteCompleted, WorkflowCompleted, WorkflowStarted
from borsbot.models.github import GithubRepoName
from borsbot.state.builds import BuildStore
from borsbot.state.registry import RepositoryState

logger = get_logger(__name__)


def is_bors_observed_branch(branch: str) -> bool:
    return branch == TRY_BRANCH_NAME


async def handle_workflow_started(db: BuildStore, event: WorkflowStarted) -> None:
    """Mark the matching pending try build as running."""
    if not is_bors_observed_branch(event.branch):
        return

    build = await db.find_try_build(event.repository, event.branch, event.commit_sha)
    if build is None:
        logger.debug(
            f"No try build for workflow {event.run_id} on {event.branch}@{event.commit_sha}"
        )
        return
    if build.status.is_terminal:
        logger.debug(f"Ignoring workflow {event.run_id} of finished try build {build.id}")
        return

    external_id = str(event.run_id)
    if build.status == BuildStatus.RUNNING and external_id in build.external_build_ids:
        return

    await db.update_build_status(build, BuildStatus.RUNNING, external_id=external_id)
    logger.info(
        f"Workflow {event.name or event.run_id} started for try build {build.id} "
        f"of {event.repository}#{build.pr_number}"
    )


async def handle_workflow_completed(
    repo: RepositoryState, db: BuildStore, event: WorkflowCompleted
) -> None:
    """Finish the matching try build and report the workflow result."""
    link = f"[{event.name or 'Workflow'}]({event.url})" if event.url else f"workflow run {event.run_id}"
    await _complete_try_build(
        repo,
        db,
        repository=event.repository,
        branch=event.branch,
        commit_sha=event.commit_sha,
        external_id=str(event.run_id),
        succeeded=event.succeeded,
        link=link,
    )


async def handle_check_suite_completed(
    repo: RepositoryState, db: BuildStore, event: CheckSuiteCompleted
) -> None:
    """Finish the matching try build and report the check suite result."""
    link = (
        f"[check suite {event.suite_id}]"
        f"(https://github.com/{event.repository}/commit/{event.commit_sha}/checks)"
    )
    await _complete_try_build(
        repo,
        db,
        repository=event.repository,
        branch=event.branch,
        commit_sha=event.commit_sha,
        external_id=str(event.suite_id),
        succeeded=event.succeeded,
        link=link,
    )


async def _complete_try_build(
    repo: RepositoryState,
    db: BuildStore,
    *,
    repository: GithubRepoName,
    branch: str,
    commit_sha: str,
    external_id: str,
    succeeded: bool,
    link: str,
) -> None:
    if not is_bors_observed_branch(branch):
        return

    build = await db.find_try_build(repository, branch, commit_sha)
    if build is None:
        logger.debug(f"No try build for {external_id} on {branch}@{commit_sha}")
        return
    if build.status.is_terminal:
        logger.debug(
            f"Try build {build.id} is already {build.status.value}, ignoring {external_id}"
        )
        return

    status = BuildStatus.SUCCEEDED if succeeded else BuildStatus.FAILED
    build = await db.update_build_status(build, status, external_id=external_id)
    logger.info(
        f"Try build {build.id} of {repository}#{build.pr_number} finished: {status.value}"
    )

    await repo.client.post_comment(build.pr_number, try_build_result_message(build, link))


def try_build_result_message(build: TryBuild, link: str) -> str:
    if build.status == BuildStatus.SUCCEEDED:
        return (
            f":sunny: Try build successful ({link})\n"
            f"Build commit: {build.commit_sha} (`{build.commit_sha}`)"
        )
    return f":broken_heart: Test failed ({link})"
