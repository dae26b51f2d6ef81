"""
Reference Check Main - Azure Board Reference Check

PURPOSE:
    Entry point of the action. Runs the stages in order for one pull request
    event and turns the result into an exit code:

        1. Load Trigger Context  -> (draft + skip-drafts? stop here, success)
        2. Classify References   -> References | Exempted | Missing
        3. Reconcile Check Run   -> create or update the single check run
        4. Publish Results       -> job summary, `ab-numbers`, error annotations

    The run succeeds only when the verdict is not Missing AND the check run was
    written. A Missing verdict is still written to the check run first, so the
    pull request shows the failing check with instructions.

CALLED BY:
    - the `ab-reference-check` console script (action.yml)
    - `python -m ab_reference_check`
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from ab_reference_check.actions_logging import configure_logging
from ab_reference_check.errors import ConfigurationError, InvocationContextError
from ab_reference_check.github_checks_api import GitHubChecksAPI
from ab_reference_check.stage_1_load_trigger_context import (
    TriggerContext,
    load_trigger_context,
    should_skip,
)
from ab_reference_check.stage_2_classify_references import (
    Exempted,
    Missing,
    References,
    Verdict,
    classify,
    referenced_numbers,
)
from ab_reference_check.stage_3_reconcile_check_run import (
    CheckRunStore,
    ReconcileResult,
    reconcile,
)
from ab_reference_check.stage_4_publish_results import (
    OUTPUT_AB_NUMBERS,
    missing_reference_message,
    render_job_summary,
    set_failed,
    set_output,
    write_job_summary,
)

logger = logging.getLogger(__name__)


@dataclass
class CheckOutcome:
    """What one run decided, before anything is reported to the workflow."""

    exit_code: int
    verdict: Optional[Verdict] = None
    references: list = field(default_factory=list)
    reconcile_result: Optional[ReconcileResult] = None
    failure_messages: list = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.verdict is None and self.exit_code == 0


def run_reference_check(context: TriggerContext, store: CheckRunStore) -> CheckOutcome:
    """
    Classify the description and reconcile the check run.

    Does no reporting of its own (apart from logging) so tests can drive it
    with a fake store and inspect the outcome.
    """
    if should_skip(context):
        logger.info("Skipping validation for draft PR")
        return CheckOutcome(exit_code=0)

    verdict = classify(context.description)
    references = referenced_numbers(verdict)
    if isinstance(verdict, References):
        logger.info("Found Azure Board references: %s", ", ".join(references))
    elif isinstance(verdict, Exempted):
        logger.info("No Azure Board reference, check bypassed with the exemption keyword")
    else:
        logger.info("No Azure Board reference found in PR description")

    result = reconcile(store, context.repository, context.head_sha, verdict)

    failure_messages = []
    if isinstance(verdict, Missing):
        failure_messages.append(missing_reference_message())
    if not result.ok:
        failure_messages.append(result.reason)

    return CheckOutcome(
        exit_code=1 if failure_messages else 0,
        verdict=verdict,
        references=references,
        reconcile_result=result,
        failure_messages=failure_messages,
    )


def publish_outcome(outcome: CheckOutcome, environ: dict) -> None:
    """Write the job summary and output, and annotate every failure."""
    if outcome.verdict is not None:
        write_job_summary(render_job_summary(outcome.verdict), environ)
    set_output(OUTPUT_AB_NUMBERS, outcome.references, environ)
    for message in outcome.failure_messages:
        set_failed(message)


def main(environ: Optional[dict] = None) -> int:
    environ = dict(os.environ) if environ is None else environ
    configure_logging(environ)

    try:
        context = load_trigger_context(environ)
    except (InvocationContextError, ConfigurationError) as e:
        set_failed(str(e))
        return 1

    store = GitHubChecksAPI(context.token, context.api_url)
    outcome = run_reference_check(context, store)
    publish_outcome(outcome, environ)
    return outcome.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
