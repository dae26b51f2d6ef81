"""
Stage 1: Load Trigger Context - Azure Board Reference Check

PURPOSE:
    Read everything the check needs from the GitHub Actions runner environment
    ONCE, at the start of the run, and hand it to the later stages as a plain
    TriggerContext. Nothing after this stage touches os.environ or the event
    file, which keeps the classifier and the reconciler free of ambient state
    and lets tests build a TriggerContext by hand.

CALLED BY:
    reference_check_main.py - passes os.environ (or a test dict).

DEPENDS ON:
    - GITHUB_EVENT_PATH: JSON payload of the triggering event. Only
      pull_request / pull_request_target payloads carry a `pull_request` key.
    - GITHUB_REPOSITORY: "owner/name" of the repository running the workflow.
    - GITHUB_API_URL: REST base URL (differs on GitHub Enterprise Server).
    - INPUT_SKIP-DRAFTS / INPUT_SKIP_DRAFTS: the action's `skip-drafts` input.
      JavaScript actions get the hyphenated name; composite actions have to
      pass it through `env:` where only the underscore form is usable.
    - INPUT_GITHUB-TOKEN / INPUT_GITHUB_TOKEN / GITHUB_TOKEN: API token.

RETURNS:
    TriggerContext, or raises InvocationContextError / ConfigurationError.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from ab_reference_check.errors import ConfigurationError, InvocationContextError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

NOT_A_PULL_REQUEST_MESSAGE = "This action can only be run on pull request events"

# YAML 1.2 core schema booleans, same set @actions/core getBooleanInput accepts
_TRUE_VALUES = ("true", "True", "TRUE")
_FALSE_VALUES = ("false", "False", "FALSE")


@dataclass(frozen=True)
class TriggerContext:
    """The fields of a pull-request event the reference check consumes."""

    repository: str
    head_sha: str
    description: str
    is_draft: bool
    skip_drafts: bool
    token: str
    api_url: str = DEFAULT_API_URL
    pull_request_number: Optional[int] = None


def load_trigger_context(environ: dict) -> TriggerContext:
    """
    Build a TriggerContext from the runner environment.

    Args:
        environ: Mapping of environment variables (usually os.environ).

    Returns:
        The populated TriggerContext.

    Raises:
        InvocationContextError: no event payload, or the payload is not a
            pull request event, or the pull request has no head sha.
        ConfigurationError: `skip-drafts` is not a boolean, or no token.
    """
    skip_drafts = parse_boolean_input(_first_env(environ, "INPUT_SKIP-DRAFTS", "INPUT_SKIP_DRAFTS"), "skip-drafts")

    payload = _read_event_payload(environ.get("GITHUB_EVENT_PATH", ""))
    pull_request = payload.get("pull_request")
    if not isinstance(pull_request, dict):
        raise InvocationContextError(NOT_A_PULL_REQUEST_MESSAGE)

    head_sha = (pull_request.get("head") or {}).get("sha") or ""
    if not head_sha:
        raise InvocationContextError("Pull request event payload has no head commit sha")

    repository = environ.get("GITHUB_REPOSITORY", "") or (payload.get("repository") or {}).get("full_name", "")
    if not repository or "/" not in repository:
        raise InvocationContextError("Could not determine the repository (expected owner/name)")

    token = _first_env(environ, "INPUT_GITHUB-TOKEN", "INPUT_GITHUB_TOKEN", "GITHUB_TOKEN")
    if not token:
        raise ConfigurationError(
            "No GitHub token available. Pass `github-token` to the action or set GITHUB_TOKEN."
        )

    context = TriggerContext(
        repository=repository,
        head_sha=head_sha,
        # A PR opened with an empty description has body=null in the payload
        description=pull_request.get("body") or "",
        is_draft=bool(pull_request.get("draft", False)),
        skip_drafts=skip_drafts,
        token=token,
        api_url=(environ.get("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/"),
        pull_request_number=pull_request.get("number"),
    )
    logger.debug(
        "Loaded pull request #%s on %s at %s (draft=%s, skip-drafts=%s)",
        context.pull_request_number, context.repository, context.head_sha,
        context.is_draft, context.skip_drafts,
    )
    return context


def should_skip(context: TriggerContext) -> bool:
    """Draft pull requests are left alone when `skip-drafts` is on."""
    return context.skip_drafts and context.is_draft


def parse_boolean_input(raw: str, name: str) -> bool:
    """
    Parse an action input as a boolean.

    An unset or empty input is False. Anything outside the YAML 1.2 core
    schema booleans is rejected instead of being silently treated as False.
    """
    value = raw.strip()
    if not value:
        return False
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


# ---------------------------------------------------------------------------
# HELPERS
# ---------------------------------------------------------------------------


def _first_env(environ: dict, *names: str) -> str:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return ""


def _read_event_payload(event_path: str) -> dict:
    """Load the webhook payload the runner wrote to disk."""
    if not event_path:
        raise InvocationContextError(NOT_A_PULL_REQUEST_MESSAGE)
    try:
        with open(event_path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvocationContextError(f"Could not read event payload at {event_path}: {e}") from e
    if not isinstance(payload, dict):
        raise InvocationContextError(NOT_A_PULL_REQUEST_MESSAGE)
    return payload
