"""
GitHub Checks API client - Azure Board Reference Check

PURPOSE:
    Thin wrapper around the three GitHub REST endpoints the reconciler needs:

        GET   /repos/{owner}/{repo}/commits/{sha}/check-runs?check_name=...
        POST  /repos/{owner}/{repo}/check-runs
        PATCH /repos/{owner}/{repo}/check-runs/{check_run_id}

    It implements the CheckRunStore capability declared in
    stage_3_reconcile_check_run.py. The reconciler never sees `requests`;
    every transport, HTTP or decoding failure comes out of this class as a
    CheckRunStoreError.

DEPENDS ON:
    - The workflow token must have `checks: write`. The default GITHUB_TOKEN
      on pull requests from forks is read-only, so writes from forks fail with
      403 and surface as ExternalWriteError.

COST:
    2 API calls per run (one lookup, one create-or-update).
"""

import logging
from typing import Optional

import requests

from ab_reference_check.errors import CheckRunStoreError
from ab_reference_check.stage_1_load_trigger_context import DEFAULT_API_URL

logger = logging.getLogger(__name__)

# Seconds; requests has no default timeout
REQUEST_TIMEOUT_SECONDS = 30

GITHUB_API_VERSION = "2022-11-28"


class GitHubChecksAPI:
    """
    Check-run operations against the GitHub REST API.

    Repository names are passed per call as "owner/name" so a single client
    can serve any repository the token can reach.
    """

    def __init__(self, token: str, api_url: str = DEFAULT_API_URL, session: Optional[requests.Session] = None):
        self.api_url = api_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        })

    def find_check_run(self, repository: str, head_sha: str, name: str) -> Optional[dict]:
        """Return the check run called `name` on `head_sha`, or None."""
        url = f"{self.api_url}/repos/{repository}/commits/{head_sha}/check-runs"
        params = {"check_name": name, "per_page": 1}
        data = self._request("GET", url, params=params)
        check_runs = data.get("check_runs") or []
        if not check_runs:
            return None
        check_run = check_runs[0]
        if not isinstance(check_run, dict) or check_run.get("id") is None:
            raise CheckRunStoreError(f"GET {url} returned a check run without an id")
        return check_run

    def create_check_run(self, repository: str, payload: dict) -> dict:
        """Create a check run. `payload` must include name and head_sha."""
        url = f"{self.api_url}/repos/{repository}/check-runs"
        return self._request("POST", url, json=payload)

    def update_check_run(self, repository: str, check_run_id: int, payload: dict) -> dict:
        """Update an existing check run in place."""
        url = f"{self.api_url}/repos/{repository}/check-runs/{check_run_id}"
        return self._request("PATCH", url, json=payload)

    def _request(self, method: str, url: str, **kwargs) -> dict:
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=REQUEST_TIMEOUT_SECONDS, **kwargs)
            resp.raise_for_status()
            data = resp.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise CheckRunStoreError(
                f"{method} {url} failed with HTTP {status}: {_github_error_message(e.response)}",
                status_code=status,
            ) from e
        except requests.RequestException as e:
            raise CheckRunStoreError(f"{method} {url} failed: {e}") from e
        except ValueError as e:
            # resp.json() raises a ValueError subclass on malformed bodies
            raise CheckRunStoreError(f"{method} {url} returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise CheckRunStoreError(f"{method} {url} returned {type(data).__name__}, expected a JSON object")
        return data


def _github_error_message(response: Optional[requests.Response]) -> str:
    """Pull GitHub's `message` field out of an error response if there is one."""
    if response is None:
        return "no response"
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason or "no details"
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return response.reason or "no details"
