"""Shared fixtures for the reference check tests."""

import json
import logging
from itertools import count

import pytest

from ab_reference_check.errors import CheckRunStoreError
from ab_reference_check.stage_1_load_trigger_context import TriggerContext


class FakeCheckRunStore:
    """
    In-memory CheckRunStore that records every call in order.

    Check runs are keyed like GitHub's: (repository, head_sha, name). Set
    `fail_on` to "find", "create" or "update" to make that call raise.
    """

    def __init__(self, fail_on=None):
        self.check_runs = {}
        self.calls = []
        self.fail_on = fail_on
        self._ids = count(1000)

    def find_check_run(self, repository, head_sha, name):
        self.calls.append(("find", repository, head_sha, name))
        if self.fail_on == "find":
            raise CheckRunStoreError("GET check-runs failed with HTTP 401: Bad credentials", status_code=401)
        runs = [r for r in self.check_runs.values()
                if (r["repository"], r["head_sha"], r["name"]) == (repository, head_sha, name)]
        return dict(runs[0]) if runs else None

    def create_check_run(self, repository, payload):
        self.calls.append(("create", repository, payload))
        if self.fail_on == "create":
            raise CheckRunStoreError("POST check-runs failed with HTTP 403: Resource not accessible by integration",
                                     status_code=403)
        check_run_id = next(self._ids)
        self.check_runs[check_run_id] = {"id": check_run_id, "repository": repository, **payload}
        return dict(self.check_runs[check_run_id])

    def update_check_run(self, repository, check_run_id, payload):
        self.calls.append(("update", repository, check_run_id, payload))
        if self.fail_on == "update":
            raise CheckRunStoreError("PATCH check-runs failed with HTTP 500: Server Error", status_code=500)
        self.check_runs[check_run_id].update(payload)
        return dict(self.check_runs[check_run_id])

    def runs_for(self, repository, head_sha):
        return [r for r in self.check_runs.values()
                if r["repository"] == repository and r["head_sha"] == head_sha]


@pytest.fixture
def fake_store():
    return FakeCheckRunStore()


@pytest.fixture
def make_context():
    def _make(description="", is_draft=False, skip_drafts=False, head_sha="abc123"):
        return TriggerContext(
            repository="octo-org/webapp",
            head_sha=head_sha,
            description=description,
            is_draft=is_draft,
            skip_drafts=skip_drafts,
            token="ghs_test",
            pull_request_number=42,
        )
    return _make


@pytest.fixture
def pr_event(tmp_path):
    """Write a pull_request event payload and return a runner-like environ."""
    def _make(body="", draft=False, skip_drafts="", head_sha="abc123", payload=None):
        if payload is None:
            payload = {
                "action": "edited",
                "pull_request": {
                    "number": 42,
                    "body": body,
                    "draft": draft,
                    "head": {"sha": head_sha, "ref": "feature/login"},
                },
                "repository": {"full_name": "octo-org/webapp"},
            }
        event_path = tmp_path / "event.json"
        event_path.write_text(json.dumps(payload))
        summary_path = tmp_path / "summary.md"
        output_path = tmp_path / "output.txt"
        summary_path.touch()
        output_path.touch()
        return {
            "GITHUB_EVENT_PATH": str(event_path),
            "GITHUB_REPOSITORY": "octo-org/webapp",
            "GITHUB_API_URL": "https://api.github.com",
            "GITHUB_TOKEN": "ghs_test",
            "GITHUB_STEP_SUMMARY": str(summary_path),
            "GITHUB_OUTPUT": str(output_path),
            "INPUT_SKIP-DRAFTS": skip_drafts,
        }
    return _make


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so caplog sees records in every test."""
    yield
    logger = logging.getLogger("ab_reference_check")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
