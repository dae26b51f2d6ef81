"""
Stage 4: Publish Results - Azure Board Reference Check

PURPOSE:
    Everything the run reports back to the workflow besides the check run:

      - the job summary (Markdown appended to $GITHUB_STEP_SUMMARY)
      - the `ab-numbers` step output (appended to $GITHUB_OUTPUT)
      - the `::error::` annotation that marks the step as failed

    These mirror core.summary / core.setOutput / core.setFailed from the
    JavaScript Actions toolkit. They are purely additive: a summary or output
    that cannot be written is logged as a warning and never changes the
    verdict or the exit code.

CALLED BY:
    reference_check_main.py - after reconciliation (or right away for skipped
    drafts and invocation errors).
"""

import json
import logging
import sys
import uuid
from typing import Optional

from ab_reference_check.actions_logging import escape_data
from ab_reference_check.stage_2_classify_references import (
    EXEMPTION_KEYWORD,
    REFERENCE_EXAMPLE,
    Exempted,
    Missing,
    References,
    Verdict,
)

logger = logging.getLogger(__name__)

OUTPUT_AB_NUMBERS = "ab-numbers"

EXAMPLE_WITH_WORK_ITEM = f"Fixed login issue as described in {REFERENCE_EXAMPLE}"
EXAMPLE_WITHOUT_WORK_ITEM = f"Updated documentation - {EXEMPTION_KEYWORD}"

REMEDY_ADD_REFERENCE = f"Add a work item reference in the format `{REFERENCE_EXAMPLE}` to your PR description"
REMEDY_ADD_EXEMPTION = f"Or bypass the check by adding `{EXEMPTION_KEYWORD}` to your PR description"


def render_job_summary(verdict: Verdict) -> str:
    """Render the Markdown job summary for a verdict."""
    if isinstance(verdict, References):
        lines = [
            "# ✅ Azure Board Reference Found",
            "Work items referenced in this PR:",
            "",
            *[f"- {number}" for number in verdict.numbers],
        ]
    elif isinstance(verdict, Exempted):
        lines = [
            "# ✅ Azure Board Reference Check Bypassed",
            f"Check bypassed with `{EXEMPTION_KEYWORD}` keyword",
            "",
            "---",
            "",
            "This PR has been marked as not requiring an Azure Board reference.",
        ]
    elif isinstance(verdict, Missing):
        lines = [
            "# ❌ Azure Board Reference Missing",
            "No Azure Board reference found in PR description",
            "",
            "---",
            "",
            "## To fix, either:",
            f"- {REMEDY_ADD_REFERENCE}",
            f"- {REMEDY_ADD_EXEMPTION}",
            "",
            "---",
            "",
            "## Examples:",
            "With work item:",
            "```markdown",
            EXAMPLE_WITH_WORK_ITEM,
            "```",
            "Without work item:",
            "```markdown",
            EXAMPLE_WITHOUT_WORK_ITEM,
            "```",
        ]
    else:
        raise TypeError(f"Unknown verdict type: {type(verdict).__name__}")

    return "\n".join(lines) + "\n"


def missing_reference_message() -> str:
    """The failure message shown on the step when no reference was found."""
    return (
        "❌ Missing Azure Board Reference\n"
        "\n"
        "This PR needs to be linked to an Azure Board work item.\n"
        "\n"
        "To fix, either:\n"
        f"   1. Add a work item reference in the format {REFERENCE_EXAMPLE} to your PR description\n"
        f"   2. Or bypass the check by adding \"{EXEMPTION_KEYWORD}\" to your PR description\n"
        "\n"
        "Examples:\n"
        f"   With work item: \"{EXAMPLE_WITH_WORK_ITEM}\"\n"
        f"   Without work item: \"{EXAMPLE_WITHOUT_WORK_ITEM}\"\n"
    )


def write_job_summary(markdown: str, environ: dict) -> bool:
    """Append Markdown to the job summary. Returns True if it was written."""
    path = environ.get("GITHUB_STEP_SUMMARY")
    if not path:
        logger.debug("GITHUB_STEP_SUMMARY is not set; skipping job summary")
        return False
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(markdown)
    except OSError as e:
        logger.warning("Could not write job summary to %s: %s", path, e)
        return False
    return True


def set_output(name: str, value, environ: dict) -> bool:
    """
    Set a step output.

    Non-string values are JSON-encoded, so `ab-numbers` reaches the workflow
    as a JSON array usable with fromJSON().
    """
    path = environ.get("GITHUB_OUTPUT")
    if not path:
        logger.debug("GITHUB_OUTPUT is not set; skipping output %s", name)
        return False

    serialized = value if isinstance(value, str) else json.dumps(value)
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"{name}<<{delimiter}\n{serialized}\n{delimiter}\n")
    except OSError as e:
        logger.warning("Could not write output %s to %s: %s", name, path, e)
        return False
    return True


def set_failed(message: str, stream: Optional[object] = None) -> None:
    """Emit an error annotation; the caller is responsible for the exit code."""
    stream = stream or sys.stdout
    print(f"::error::{escape_data(message)}", file=stream)
