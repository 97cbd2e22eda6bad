"""
Top-level event routing.

``handle_bors_event`` is the failure isolation boundary: errors raised while
handling one event are logged here and never reach the caller.
"""

from typing import assert_never

from borsbot.core.exceptions import CommandExecutionError
from borsbot.core.logging import get_logger
from borsbot.handlers.ping import command_ping
from borsbot.handlers.trybuild import command_try_build
from borsbot.handlers.workflow import (
    handle_check_suite_completed,
    handle_workflow_completed,
    handle_workflow_started,
)
from borsbot.models.commands import (
    BorsCommand,
    CommandParseError,
    MissingCommand,
    Ping,
    Try,
    UnknownCommand,
    is_parse_error,
)
from borsbot.models.events import (
    BorsEvent,
    CheckSuiteCompleted,
    InstallationsChanged,
    PullRequestComment,
    WorkflowCompleted,
    WorkflowStarted,
    event_repository,
)
from borsbot.models.github import PullRequest
from borsbot.services.parser import parse_commands
from borsbot.state.builds import BuildStore
from borsbot.state.registry import BorsState, RepositoryState

logger = get_logger(__name__)

ERROR_REPLY = ":x: Encountered an error while executing command."


async def handle_bors_event(event: BorsEvent, state: BorsState) -> None:
    """Route one event to its handler. Never raises for handler failures."""
    if isinstance(event, PullRequestComment):
        # We want to ignore comments made by this bot
        if state.is_comment_internal(event):
            kind = "app" if event.author.is_bot else "user"
            logger.debug(
                f"Ignoring comment on {event.repository}#{event.pr_number} "
                f"authored by this bot ({kind} {event.author.username})"
            )
            return

        async with state.lease(event.repository) as context:
            if context is None:
                _log_unknown_repository(event)
                return
            try:
                await handle_comment(context.repo, context.db, event)
            except CommandExecutionError as e:
                logger.warning(
                    f"Error occurred while executing {e.command} on "
                    f"{event.repository}#{event.pr_number}",
                    exc_info=True,
                )
                await _reply_error(context.repo, event.pr_number)
            except Exception:
                logger.warning(
                    f"Error occurred while handling comment on {event.repository}#{event.pr_number}",
                    exc_info=True,
                )

    elif isinstance(event, InstallationsChanged):
        logger.info("Reloading installation repositories")
        try:
            await state.reload_repositories()
        except Exception:
            logger.error("Could not reload installation repositories", exc_info=True)

    elif isinstance(event, WorkflowStarted):
        async with state.lease(event.repository) as context:
            if context is None:
                _log_unknown_repository(event)
                return
            try:
                await handle_workflow_started(context.db, event)
            except Exception:
                logger.warning(
                    f"Error occurred while handling workflow started event "
                    f"{event.run_id} of {event.repository}",
                    exc_info=True,
                )

    elif isinstance(event, WorkflowCompleted):
        async with state.lease(event.repository) as context:
            if context is None:
                _log_unknown_repository(event)
                return
            try:
                await handle_workflow_completed(context.repo, context.db, event)
            except Exception:
                logger.warning(
                    f"Error occurred while handling workflow completed event "
                    f"{event.run_id} of {event.repository}",
                    exc_info=True,
                )

    elif isinstance(event, CheckSuiteCompleted):
        async with state.lease(event.repository) as context:
            if context is None:
                _log_unknown_repository(event)
                return
            try:
                await handle_check_suite_completed(context.repo, context.db, event)
            except Exception:
                logger.warning(
                    f"Error occurred while handling check suite completed event "
                    f"{event.suite_id} of {event.repository}",
                    exc_info=True,
                )

    else:
        assert_never(event)


async def handle_comment(repo: RepositoryState, db: BuildStore, comment: PullRequestComment) -> None:
    """
    Execute the commands of a comment one by one.

    Parse errors are answered with a reply and do not stop the remaining
    commands. The first command that fails aborts the rest of the comment.

    Raises:
        CommandExecutionError: If a command fails
        GitHubAPIError: If the pull request cannot be fetched or a reply cannot be posted
    """
    commands = parse_commands(comment.text, repo.command_prefix)
    if not commands:
        return

    # comment and PR state can diverge, so always fetch a fresh snapshot
    pull_request = await repo.client.get_pull_request(comment.pr_number)

    logger.info(
        f"Received comment at https://github.com/{repo.repository}/issues/{comment.pr_number}"
        f" from {comment.author.username}, commands: {commands}"
    )

    for command in commands:
        if is_parse_error(command):
            await repo.client.post_comment(pull_request.number, parse_error_message(command))
            continue
        try:
            await execute_command(repo, db, pull_request, comment, command)
        except Exception as e:
            raise CommandExecutionError(command, e) from e


async def execute_command(
    repo: RepositoryState,
    db: BuildStore,
    pull_request: PullRequest,
    comment: PullRequestComment,
    command: BorsCommand,
) -> None:
    if isinstance(command, Ping):
        await command_ping(repo, pull_request)
    elif isinstance(command, Try):
        await command_try_build(repo, db, pull_request, comment.author)
    else:
        assert_never(command)


def parse_error_message(error: CommandParseError) -> str:
    if isinstance(error, MissingCommand):
        return "Missing command."
    elif isinstance(error, UnknownCommand):
        return f'Unknown command "{error.command}".'
    else:
        assert_never(error)


async def _reply_error(repo: RepositoryState, pr_number: int) -> None:
    try:
        await repo.client.post_comment(pr_number, ERROR_REPLY)
    except Exception:
        logger.warning(f"Could not post error reply on {repo.repository}#{pr_number}", exc_info=True)


def _log_unknown_repository(event: BorsEvent) -> None:
    logger.warning(f"Repository {event_repository(event)} not found, dropping {type(event).__name__}")
