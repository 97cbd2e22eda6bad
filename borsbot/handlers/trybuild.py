"""
Try build command handler.
"""

from borsbot.core.exceptions import MergeConflictError
from borsbot.core.logging import get_logger
from borsbot.models.build import BuildStatus
from borsbot.models.github import GithubUser, PullRequest
from borsbot.state.builds import BuildStore
from borsbot.state.registry import RepositoryState

logger = get_logger(__name__)

# Every try build of a repository reuses these two branches.
TRY_MERGE_BRANCH_NAME = "automation/bors/try-merge"
TRY_BRANCH_NAME = "automation/bors/try"


async def command_try_build(
    repo: RepositoryState,
    db: BuildStore,
    pull_request: PullRequest,
    author: GithubUser,
) -> None:
    """
    Handle ``@bors try``.

    Cancels the running try build of the PR, pushes a merge of the PR head onto
    its base to the try branch and starts tracking a new pending build.

    Raises:
        GitHubAPIError: If the branch could not be prepared (nothing is stored)
        StoreError: If the build could not be stored after the push
    """
    repository = repo.repository

    active = await db.find_active_try_build(repository, pull_request.number)
    if active is not None:
        logger.info(
            f"Cancelling try build {active.id} ({active.status.value}) "
            f"of {repository}#{pull_request.number}"
        )
        await db.update_build_status(active, BuildStatus.CANCELLED)

    try:
        merge_sha = await _prepare_try_merge(repo, pull_request)
    except MergeConflictError:
        logger.info(f"Merge conflict while preparing try build of {repository}#{pull_request.number}")
        await repo.client.post_comment(pull_request.number, merge_conflict_message(pull_request))
        return

    await repo.client.set_branch_to_sha(TRY_BRANCH_NAME, merge_sha)

    # TODO: delete or reset the try branch when this write fails after the push
    build = await db.create_try_build(
        repository,
        pull_request.number,
        TRY_BRANCH_NAME,
        merge_sha,
        author.username,
    )
    logger.info(
        f"Started try build {build.id} of {repository}#{pull_request.number} "
        f"with merge {merge_sha}, requested by {author.username}"
    )

    await repo.client.post_comment(
        pull_request.number,
        f":hourglass: Trying commit {pull_request.head.sha} with merge {merge_sha}…",
    )


async def _prepare_try_merge(repo: RepositoryState, pull_request: PullRequest) -> str:
    """Merge the PR head into its base on the helper branch and return the merge SHA."""
    await repo.client.set_branch_to_sha(TRY_MERGE_BRANCH_NAME, pull_request.base.sha)
    return await repo.client.merge_branches(
        TRY_MERGE_BRANCH_NAME,
        pull_request.head.sha,
        merge_commit_message(pull_request),
    )


def merge_commit_message(pull_request: PullRequest) -> str:
    return (
        f"Auto merge of #{pull_request.number} - {pull_request.head.name}, r=<try>\n\n"
        f"{pull_request.title}"
    )


def merge_conflict_message(pull_request: PullRequest) -> str:
    return (
        ":lock: Merge conflict\n\n"
        f"This pull request and the `{pull_request.base.name}` branch diverged in a way "
        "that cannot be automatically merged. Please rebase on top of the latest "
        f"`{pull_request.base.name}` branch and try again."
    )
