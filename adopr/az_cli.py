# az_cli.py
import json
import logging
import shutil
import subprocess

from .exceptions import PreconditionError, PullRequestCreationError
from .payloads import AutoCompleteOptions, CreatedPullRequest, PullRequestDraft

logger = logging.getLogger(__name__)

AZ_INSTALL_URL = "https://docs.microsoft.com/en-us/cli/azure/install-azure-cli"


class AzCliProvider:
    """Creates pull requests through `az repos pr` instead of calling the REST API."""

    def __init__(
        self,
        organization: str = None,
        project: str = None,
        repository: str = None,
        runner=subprocess.run,
    ):
        self.organization = organization
        self.project = project
        self.repository = repository
        self.runner = runner

    @property
    def organization_url(self):
        if not self.organization:
            return None
        if self.organization.startswith(("http://", "https://")):
            return self.organization
        return f"https://dev.azure.com/{self.organization}"

    def _run(self, args: list[str], check: bool = True):
        logger.debug("Running %s", " ".join(args))
        return self.runner(args, capture_output=True, text=True, check=check)

    def ensure_ready(self, echo=print):
        """Check az is installed and the azure-devops extension is available."""
        if shutil.which("az") is None:
            raise PreconditionError(
                f"Azure CLI is not installed. Please install it first.\nVisit: {AZ_INSTALL_URL}"
            )

        try:
            shown = self._run(["az", "extension", "show", "--name", "azure-devops"], check=False)
        except OSError as e:
            raise PreconditionError(f"Could not run the Azure CLI: {e}") from e
        if shown.returncode != 0:
            echo("Azure DevOps extension not found. Installing...")
            try:
                self._run(["az", "extension", "add", "--name", "azure-devops"])
            except subprocess.CalledProcessError as e:
                raise PreconditionError(
                    f"Could not install the azure-devops extension: {(e.stderr or '').strip()}"
                ) from e
            except OSError as e:
                raise PreconditionError(f"Could not run the Azure CLI: {e}") from e

    def _target_args(self) -> list[str]:
        args = []
        if self.repository:
            args += ["--repository", self.repository]
        if self.organization_url:
            args += ["--organization", self.organization_url]
        if self.project:
            args += ["--project", self.project]
        return args

    def create_args(self, draft: PullRequestDraft) -> list[str]:
        args = [
            "az", "repos", "pr", "create",
            "--title", draft.title,
            "--source-branch", draft.source_branch,
            "--target-branch", draft.target_branch,
            "--output", "json",
        ]
        if draft.description:
            args += ["--description", draft.description]
        if draft.optional_reviewers:
            args += ["--reviewers", *(r.id for r in draft.optional_reviewers)]
        if draft.required_reviewers:
            args += ["--required-reviewers", *(r.id for r in draft.required_reviewers)]
        if draft.work_items:
            args += ["--work-items", *(w.id for w in draft.work_items)]
        args += self._target_args()
        if draft.is_draft:
            args += ["--draft", "true"]
        return args

    def create_pr(self, draft: PullRequestDraft) -> CreatedPullRequest:
        try:
            result = self._run(self.create_args(draft))
        except subprocess.CalledProcessError as e:
            raise PullRequestCreationError(
                f"az repos pr create exited with status {e.returncode}",
                status_code=e.returncode,
                body=(e.stderr or e.stdout or "").strip(),
            ) from e
        except OSError as e:
            raise PullRequestCreationError(f"Could not run az repos pr create: {e}") from e

        try:
            body = json.loads(result.stdout)
        except (TypeError, ValueError):
            logger.warning("az returned output that is not JSON")
            return CreatedPullRequest()

        pr = CreatedPullRequest.from_response(body)
        if pr.id is not None and pr.web_url is None:
            # az output has no _links, build the web URL from the repository
            repo_url = (body.get("repository") or {}).get("webUrl")
            if repo_url:
                pr = CreatedPullRequest(pr.id, f"{repo_url}/pullrequest/{pr.id}")
        return pr

    def enable_auto_complete(self, pr_id: int, options: AutoCompleteOptions) -> bool:
        args = ["az", "repos", "pr", "update", "--id", str(pr_id), "--auto-complete", "true"]
        if options.delete_source_branch:
            args += ["--delete-source-branch", "true"]
        if options.transition_work_items:
            args += ["--transition-work-items", "true"]
        if self.organization_url:
            args += ["--organization", self.organization_url]
        args += ["--output", "none"]

        try:
            result = self._run(args, check=False)
        except OSError as e:
            logger.warning("Enabling auto-complete on PR %s failed: %s", pr_id, e)
            return False
        if result.returncode != 0:
            logger.warning(
                "Enabling auto-complete on PR %s failed: %s", pr_id, (result.stderr or "").strip()
            )
            return False
        return True
