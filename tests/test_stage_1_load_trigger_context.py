"""Tests for loading the pull request trigger context."""

import pytest

from ab_reference_check.errors import ConfigurationError, InvocationContextError
from ab_reference_check.stage_1_load_trigger_context import (
    DEFAULT_API_URL,
    NOT_A_PULL_REQUEST_MESSAGE,
    TriggerContext,
    load_trigger_context,
    parse_boolean_input,
    should_skip,
)


class TestLoadTriggerContext:

    def test_reads_pull_request_fields(self, pr_event):
        environ = pr_event(body="Fixes AB#1", draft=True, skip_drafts="true", head_sha="f00d")
        context = load_trigger_context(environ)

        assert context == TriggerContext(
            repository="octo-org/webapp",
            head_sha="f00d",
            description="Fixes AB#1",
            is_draft=True,
            skip_drafts=True,
            token="ghs_test",
            api_url="https://api.github.com",
            pull_request_number=42,
        )

    def test_null_body_becomes_empty_string(self, pr_event):
        assert load_trigger_context(pr_event(body=None)).description == ""

    def test_missing_draft_flag_defaults_to_false(self, pr_event):
        payload = {"pull_request": {"number": 1, "body": "", "head": {"sha": "abc"}}}
        assert load_trigger_context(pr_event(payload=payload)).is_draft is False

    def test_underscore_input_name_for_composite_actions(self, pr_event):
        environ = pr_event()
        del environ["INPUT_SKIP-DRAFTS"]
        environ["INPUT_SKIP_DRAFTS"] = "TRUE"
        assert load_trigger_context(environ).skip_drafts is True

    def test_action_token_input_preferred_over_env_token(self, pr_event):
        environ = pr_event()
        environ["INPUT_GITHUB_TOKEN"] = "ghs_input"
        assert load_trigger_context(environ).token == "ghs_input"

    def test_repository_falls_back_to_payload(self, pr_event):
        environ = pr_event()
        del environ["GITHUB_REPOSITORY"]
        assert load_trigger_context(environ).repository == "octo-org/webapp"

    def test_api_url_defaults_and_strips_slash(self, pr_event):
        environ = pr_event()
        del environ["GITHUB_API_URL"]
        assert load_trigger_context(environ).api_url == DEFAULT_API_URL

        environ["GITHUB_API_URL"] = "https://ghe.example.com/api/v3/"
        assert load_trigger_context(environ).api_url == "https://ghe.example.com/api/v3"


class TestInvocationErrors:

    def test_push_event_is_rejected(self, pr_event):
        environ = pr_event(payload={"ref": "refs/heads/main", "commits": []})
        with pytest.raises(InvocationContextError, match=NOT_A_PULL_REQUEST_MESSAGE):
            load_trigger_context(environ)

    def test_missing_event_path(self):
        with pytest.raises(InvocationContextError, match=NOT_A_PULL_REQUEST_MESSAGE):
            load_trigger_context({"GITHUB_TOKEN": "t"})

    def test_unreadable_event_file(self, tmp_path):
        with pytest.raises(InvocationContextError, match="Could not read event payload"):
            load_trigger_context({"GITHUB_EVENT_PATH": str(tmp_path / "nope.json")})

    def test_corrupt_event_file(self, tmp_path):
        event = tmp_path / "event.json"
        event.write_text("{not json")
        with pytest.raises(InvocationContextError):
            load_trigger_context({"GITHUB_EVENT_PATH": str(event)})

    def test_missing_head_sha(self, pr_event):
        environ = pr_event(payload={"pull_request": {"number": 1, "body": "AB#1", "head": {}}})
        with pytest.raises(InvocationContextError, match="head commit sha"):
            load_trigger_context(environ)

    def test_missing_token(self, pr_event):
        environ = pr_event()
        del environ["GITHUB_TOKEN"]
        with pytest.raises(ConfigurationError, match="github-token"):
            load_trigger_context(environ)


class TestParseBooleanInput:

    @pytest.mark.parametrize("raw", ["true", "True", "TRUE", " true "])
    def test_true(self, raw):
        assert parse_boolean_input(raw, "skip-drafts") is True

    @pytest.mark.parametrize("raw", ["false", "False", "FALSE", "", "  "])
    def test_false(self, raw):
        assert parse_boolean_input(raw, "skip-drafts") is False

    @pytest.mark.parametrize("raw", ["yes", "1", "tRUE", "on"])
    def test_rejects_other_values(self, raw):
        with pytest.raises(ConfigurationError, match="skip-drafts"):
            parse_boolean_input(raw, "skip-drafts")

    def test_bad_input_fails_before_reading_event(self):
        with pytest.raises(ConfigurationError):
            load_trigger_context({"INPUT_SKIP-DRAFTS": "maybe"})


class TestShouldSkip:

    @pytest.mark.parametrize("is_draft, skip_drafts, expected", [
        (True, True, True),
        (True, False, False),
        (False, True, False),
        (False, False, False),
    ])
    def test_only_drafts_with_toggle_are_skipped(self, make_context, is_draft, skip_drafts, expected):
        assert should_skip(make_context(is_draft=is_draft, skip_drafts=skip_drafts)) is expected
