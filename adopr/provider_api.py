# provider_api.py
import base64
import logging

import requests

from .exceptions import PreconditionError, PullRequestCreationError
from .payloads import AutoCompleteOptions, CreatedPullRequest, PullRequestDraft

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "7.1"
DEFAULT_TIMEOUT = 30


class AzureDevOpsProvider:
    def __init__(
        self,
        organization: str,
        project: str,
        repository: str,
        pat: str,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session = None,
    ):
        missing = [
            name
            for name, value in (
                ("organization", organization),
                ("project", project),
                ("repository", repository),
                ("personal access token", pat),
            )
            if not value
        ]
        if missing:
            raise PreconditionError(f"Missing Azure DevOps {', '.join(missing)}.")
        if timeout is None or timeout <= 0:
            raise PreconditionError(f"Timeout must be greater than 0, got {timeout}.")

        self.organization = organization
        self.project = project
        self.repository = repository
        self.api_version = api_version
        self.timeout = timeout
        self.session = session or requests.Session()

        # encode PAT
        token = f":{pat}".encode("utf-8")
        self.auth_header = base64.b64encode(token).decode("utf-8")

        self.base_url = (
            f"https://dev.azure.com/{organization}/{project}"
            f"/_apis/git/repositories/{repository}"
        )

    @property
    def headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Basic {self.auth_header}",
        }

    def pull_requests_url(self, pr_id: int = None) -> str:
        if pr_id is None:
            return f"{self.base_url}/pullrequests?api-version={self.api_version}"
        return f"{self.base_url}/pullrequests/{pr_id}?api-version={self.api_version}"

    def create_pr(self, draft: PullRequestDraft) -> CreatedPullRequest:
        """POST the draft once. Anything but 201 raises PullRequestCreationError."""
        url = self.pull_requests_url()
        logger.debug("POST %s", url)

        try:
            response = self.session.post(
                url, json=draft.to_payload(), headers=self.headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise PullRequestCreationError(f"Azure PR creation failed: {e}") from e

        if response.status_code != 201:
            raise PullRequestCreationError(
                f"Azure PR creation failed {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            body = response.json()
        except ValueError:
            logger.warning("PR created but the response body is not JSON")
            return CreatedPullRequest()

        pr = CreatedPullRequest.from_response(body)
        if pr.id is None:
            logger.warning("PR created but the response has no pullRequestId")
        return pr

    def enable_auto_complete(self, pr_id: int, options: AutoCompleteOptions) -> bool:
        """PATCH auto-complete settings onto an existing PR. Never raises on HTTP errors."""
        url = self.pull_requests_url(pr_id)
        logger.debug("PATCH %s", url)

        try:
            response = self.session.patch(
                url, json=options.to_payload(), headers=self.headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning("Enabling auto-complete on PR %s failed: %s", pr_id, e)
            return False

        if not response.ok:
            logger.warning(
                "Enabling auto-complete on PR %s failed %s: %s",
                pr_id,
                response.status_code,
                response.text,
            )
            return False
        return True
