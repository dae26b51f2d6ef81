"""
Stage 3: Reconcile Check Run - Azure Board Reference Check

PURPOSE:
    Make the "Azure Board Reference" check run on the pull request's head
    commit reflect the verdict from Stage 2. The workflow fires again every
    time the author edits the description, so the same commit is evaluated
    many times; each run must leave exactly ONE check run behind, carrying the
    latest verdict.

    Protocol per run:
      1. Look up the check run by (repository, head sha, name), per_page=1.
      2. Found     -> update it in place (status=completed, new conclusion/output).
         Not found -> create it with the same completed payload.
      3. Never both. The write does not start until the lookup has answered.

CALLED BY:
    reference_check_main.py - after classification, with a GitHubChecksAPI
    (or a fake store in tests).

FAILURE HANDLING:
    - Lookup fails -> ExternalQueryError, nothing is written. Creating blindly
      here could leave two check runs on the commit.
    - Write fails  -> ExternalWriteError. No retry; the next workflow run
      repairs the check run.

KNOWN LIMITATION:
    Two runs for the same commit racing each other can both see "not found"
    and both create. GitHub offers no compare-and-create for check runs, and
    the workflow's own `concurrency:` setting is the place to serialise runs.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from ab_reference_check.errors import (
    CheckRunStoreError,
    ExternalQueryError,
    ExternalWriteError,
    ReferenceCheckError,
)
from ab_reference_check.stage_2_classify_references import (
    EXEMPTION_KEYWORD,
    REFERENCE_EXAMPLE,
    Exempted,
    Missing,
    References,
    Verdict,
)

logger = logging.getLogger(__name__)

CHECK_RUN_NAME = "Azure Board Reference"

STATUS_COMPLETED = "completed"
CONCLUSION_SUCCESS = "success"
CONCLUSION_FAILURE = "failure"

# GitHub rejects check run output.summary / output.text longer than this (422)
OUTPUT_FIELD_LIMIT = 65535

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"


class CheckRunStore(Protocol):
    """The three check-run operations the reconciler relies on."""

    def find_check_run(self, repository: str, head_sha: str, name: str) -> Optional[dict]:
        ...

    def create_check_run(self, repository: str, payload: dict) -> dict:
        ...

    def update_check_run(self, repository: str, check_run_id: int, payload: dict) -> dict:
        ...


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconcile call: ok, or the error that stopped it."""

    ok: bool
    action: Optional[str] = None
    check_run_id: Optional[int] = None
    error: Optional[ReferenceCheckError] = None

    @property
    def reason(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None


def reconcile(store: CheckRunStore, repository: str, head_sha: str, verdict: Verdict) -> ReconcileResult:
    """
    Create or update the reference check run for one commit.

    Args:
        store: CheckRunStore implementation (GitHubChecksAPI in production).
        repository: "owner/name".
        head_sha: The pull request's head commit.
        verdict: Output of classify().

    Returns:
        ReconcileResult. Errors are returned, not raised, so the caller can
        still report the verdict alongside the write failure.
    """
    fields = build_check_run_fields(verdict)

    try:
        existing = store.find_check_run(repository, head_sha, CHECK_RUN_NAME)
    except CheckRunStoreError as e:
        logger.error("Could not look up the existing '%s' check run: %s", CHECK_RUN_NAME, e)
        return ReconcileResult(
            ok=False,
            error=ExternalQueryError(f"Failed to look up the '{CHECK_RUN_NAME}' check run: {e}"),
        )

    if existing is not None:
        check_run_id = existing.get("id")
        if check_run_id is None:
            logger.error("Existing '%s' check run has no id: %r", CHECK_RUN_NAME, existing)
            return ReconcileResult(
                ok=False,
                error=ExternalQueryError(f"Lookup of the '{CHECK_RUN_NAME}' check run returned no id"),
            )
        try:
            store.update_check_run(repository, check_run_id, fields)
        except CheckRunStoreError as e:
            logger.error("Could not update check run %s: %s", check_run_id, e)
            return ReconcileResult(
                ok=False,
                action=ACTION_UPDATED,
                check_run_id=check_run_id,
                error=ExternalWriteError(f"Failed to update the '{CHECK_RUN_NAME}' check run: {e}"),
            )
        logger.info("Updated check run %s (%s)", check_run_id, fields["conclusion"])
        return ReconcileResult(ok=True, action=ACTION_UPDATED, check_run_id=check_run_id)

    payload = {"head_sha": head_sha, **fields}
    try:
        created = store.create_check_run(repository, payload)
    except CheckRunStoreError as e:
        logger.error("Could not create the '%s' check run: %s", CHECK_RUN_NAME, e)
        return ReconcileResult(
            ok=False,
            action=ACTION_CREATED,
            error=ExternalWriteError(f"Failed to create the '{CHECK_RUN_NAME}' check run: {e}"),
        )
    check_run_id = (created or {}).get("id")
    logger.info("Created check run %s (%s)", check_run_id, fields["conclusion"])
    return ReconcileResult(ok=True, action=ACTION_CREATED, check_run_id=check_run_id)


def build_check_run_fields(verdict: Verdict) -> dict:
    """
    Map a verdict to the name, status, conclusion and output of the check run.

    The same dict is sent on update and (plus head_sha) on create, so a
    re-run converges on identical content.
    """
    if isinstance(verdict, References):
        numbers = list(verdict.numbers)
        conclusion = CONCLUSION_SUCCESS
        output = {
            "title": "Azure Board reference found",
            "summary": join_within_limit("Work items referenced in this PR: ", numbers, ", "),
            "text": join_within_limit("", [f"- {number}" for number in numbers], "\n"),
        }
    elif isinstance(verdict, Exempted):
        conclusion = CONCLUSION_SUCCESS
        output = {
            "title": "Azure Board reference check bypassed",
            "summary": f"Check bypassed with `{EXEMPTION_KEYWORD}` keyword",
            "text": "This PR has been marked as not requiring an Azure Board reference.",
        }
    elif isinstance(verdict, Missing):
        conclusion = CONCLUSION_FAILURE
        output = {
            "title": "Azure Board reference missing",
            "summary": (
                "No Azure Board reference found in PR description. To fix, either:\n"
                f"1. Add a work item reference in the format `{REFERENCE_EXAMPLE}` to your PR description\n"
                f"2. Or bypass the check by adding `{EXEMPTION_KEYWORD}` to your PR description"
            ),
            "text": (
                "**Examples:**\n\n"
                f"With work item: `Fixed login issue as described in {REFERENCE_EXAMPLE}`\n\n"
                f"Without work item: `Updated documentation - {EXEMPTION_KEYWORD}`"
            ),
        }
    else:
        raise TypeError(f"Unknown verdict type: {type(verdict).__name__}")

    return {
        "name": CHECK_RUN_NAME,
        "status": STATUS_COMPLETED,
        "conclusion": conclusion,
        "output": output,
    }


def join_within_limit(prefix: str, items: list, separator: str, limit: int = OUTPUT_FIELD_LIMIT) -> str:
    """
    Join `items` after `prefix`, keeping the result at most `limit` characters.

    Items that do not fit are dropped from the end and replaced by
    "... and K more".
    """
    text = prefix + separator.join(items)
    if len(text) <= limit:
        return text

    budget = limit - len(prefix) - len(separator) - len(f"... and {len(items)} more")
    shown = []
    used = 0
    for item in items:
        cost = len(item) + (len(separator) if shown else 0)
        if used + cost > budget:
            break
        shown.append(item)
        used += cost

    tail = f"... and {len(items) - len(shown)} more"
    return prefix + separator.join(shown + [tail])
