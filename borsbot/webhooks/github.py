"""
GitHub webhook handler.

Translates webhook payloads into bot events and hands them to the event
process. Signatures are not verified here.
"""

from typing import Any

from aiohttp import web

from borsbot.core.exceptions import WebhookPayloadError
from borsbot.core.logging import get_logger
from borsbot.models.events import (
    BorsEvent,
    CheckSuiteCompleted,
    InstallationsChanged,
    PullRequestComment,
    WorkflowCompleted,
    WorkflowStarted,
)
from borsbot.models.github import GithubRepoName
from borsbot.services.github.schemas import parse_user
from borsbot.services.process import BorsProcess

logger = get_logger(__name__)

BORS_PROCESS = web.AppKey("bors_process", BorsProcess)

_WORKFLOW_STARTED_ACTIONS = {"requested", "in_progress"}


def parse_webhook_event(event_name: str, payload: dict[str, Any]) -> BorsEvent | None:
    """
    Convert a webhook delivery into an event.

    Args:
        event_name: Value of the ``X-GitHub-Event`` header
        payload: Decoded JSON body

    Returns:
        The event, or None for deliveries the bot does not care about

    Raises:
        WebhookPayloadError: If the payload is malformed
    """
    if not isinstance(payload, dict):
        raise WebhookPayloadError(f"Expected JSON object for {event_name} event")

    try:
        if event_name == "issue_comment":
            return _parse_issue_comment(payload)
        if event_name in ("installation", "installation_repositories"):
            return InstallationsChanged()
        if event_name == "workflow_run":
            return _parse_workflow_run(payload)
        if event_name == "check_suite":
            return _parse_check_suite(payload)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise WebhookPayloadError(f"Malformed {event_name} payload: {e}")
    return None


def _repository(payload: dict[str, Any]) -> GithubRepoName:
    return GithubRepoName.parse(payload["repository"]["full_name"])


def _parse_issue_comment(payload: dict[str, Any]) -> PullRequestComment | None:
    if payload.get("action") != "created":
        return None
    issue = payload["issue"]
    # Comments on plain issues are not interesting
    if "pull_request" not in issue:
        return None
    comment = payload["comment"]
    return PullRequestComment(
        repository=_repository(payload),
        pr_number=int(issue["number"]),
        author=parse_user(comment.get("user")),
        text=comment.get("body") or "",
    )


def _parse_workflow_run(payload: dict[str, Any]) -> BorsEvent | None:
    action = payload.get("action")
    run = payload["workflow_run"]
    if not run.get("head_branch"):
        return None

    if action in _WORKFLOW_STARTED_ACTIONS:
        return WorkflowStarted(
            repository=_repository(payload),
            branch=run["head_branch"],
            commit_sha=run["head_sha"],
            run_id=int(run["id"]),
            name=run.get("name") or "",
            url=run.get("html_url") or "",
        )
    if action == "completed":
        return WorkflowCompleted(
            repository=_repository(payload),
            branch=run["head_branch"],
            commit_sha=run["head_sha"],
            run_id=int(run["id"]),
            succeeded=run.get("conclusion") == "success",
            name=run.get("name") or "",
            url=run.get("html_url") or "",
        )
    return None


def _parse_check_suite(payload: dict[str, Any]) -> CheckSuiteCompleted | None:
    if payload.get("action") != "completed":
        return None
    suite = payload["check_suite"]
    if not suite.get("head_branch"):
        return None
    return CheckSuiteCompleted(
        repository=_repository(payload),
        branch=suite["head_branch"],
        commit_sha=suite["head_sha"],
        suite_id=int(suite["id"]),
        succeeded=suite.get("conclusion") == "success",
    )


async def handle_github_webhook(request: web.Request) -> web.Response:
    """Handle GitHub App webhook deliveries."""
    event_name = request.headers.get("X-GitHub-Event")
    if not event_name:
        return web.Response(status=400, text="Missing event type")

    try:
        payload = await request.json()
    except ValueError:
        return web.Response(status=400, text="Invalid JSON")

    try:
        event = parse_webhook_event(event_name, payload)
    except WebhookPayloadError as e:
        logger.warning(f"Rejected webhook delivery: {e}")
        return web.Response(status=400, text="Malformed payload")

    if event is None:
        return web.Response(status=200, text="Ignored event")

    logger.debug(f"Received {type(event).__name__} from {event_name} webhook")
    request.app[BORS_PROCESS].submit(event)
    return web.Response(status=200, text="Accepted")
