# app.py
import logging
import webbrowser
from enum import Enum

import typer
from dotenv import find_dotenv, load_dotenv

from .az_cli import AzCliProvider
from .exceptions import AdoprError, PreconditionError, PullRequestCreationError
from .local_git import LocalGit
from .payloads import (
    AutoCompleteOptions,
    PullRequestDraft,
    build_work_items,
    merge_reviewers,
)
from .provider_api import DEFAULT_API_VERSION, DEFAULT_TIMEOUT, AzureDevOpsProvider

logger = logging.getLogger(__name__)

app = typer.Typer(help="Create Azure DevOps pull requests from the current branch.")

POSSIBLE_ISSUES = [
    "Not authenticated with Azure DevOps (set AZURE_DEVOPS_EXT_PAT or run 'az devops login')",
    "Invalid organization, project, or repository settings",
    "Source branch not pushed to remote",
    "Insufficient permissions",
    "PR with same source/target already exists",
]


class Backend(str, Enum):
    api = "api"
    az = "az"


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------- CREATE ----------------------
@app.command()
def create(
    title: str = typer.Option(None, "--title", "-t", help="PR title (required)"),
    description: str = typer.Option("", "--description", "-d", help="PR description"),
    source_branch: str = typer.Option(
        None, "--source-branch", "-s", help="Source branch (defaults to current branch)"
    ),
    target_branch: str = typer.Option("main", "--target-branch", "-T", help="Target branch"),
    reviewers: list[str] = typer.Option(
        None, "--reviewers", "-r", help="Reviewers, space separated or repeated"
    ),
    required_reviewers: list[str] = typer.Option(
        None, "--required-reviewers", "-R", help="Required reviewers, space separated or repeated"
    ),
    work_items: list[str] = typer.Option(
        None, "--work-items", "-w", help="Work item IDs, space separated or repeated"
    ),
    draft: bool = typer.Option(False, "--draft", help="Create as draft PR"),
    auto_complete: bool = typer.Option(
        False, "--auto-complete", help="Enable auto-complete when conditions are met"
    ),
    delete_source_branch: bool = typer.Option(
        False, "--delete-source-branch", help="Delete source branch after merge"
    ),
    transition_work_items: bool = typer.Option(
        False, "--transition-work-items", help="Transition linked work items to next state"
    ),
    open_browser: bool = typer.Option(False, "--open", help="Open PR in browser after creation"),
    repository: str = typer.Option(
        None,
        "--repository",
        envvar="AZURE_DEVOPS_REPOSITORY",
        help="Repository name or ID (defaults to the origin remote name)",
    ),
    organization: str = typer.Option(
        None, "--organization", envvar="AZURE_DEVOPS_ORG", help="Azure DevOps organization"
    ),
    project: str = typer.Option(
        None, "--project", envvar="AZURE_DEVOPS_PROJECT", help="Azure DevOps project"
    ),
    pat: str = typer.Option(
        None,
        "--pat",
        envvar="AZURE_DEVOPS_EXT_PAT",
        show_default=False,
        help="Azure DevOps personal access token",
    ),
    backend: Backend = typer.Option(
        Backend.api, "--backend", help="Call the REST API directly or go through the az CLI"
    ),
    api_version: str = typer.Option(DEFAULT_API_VERSION, help="REST API version"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, help="HTTP timeout in seconds"),
):
    """Create a pull request from the current branch."""
    try:
        if not title:
            raise PreconditionError("Title is required. Use -t or --title to specify it.")

        if backend == Backend.api:
            if not pat:
                raise PreconditionError(
                    "Personal access token is required. Set AZURE_DEVOPS_EXT_PAT or use --pat."
                )
            if not organization or not project:
                raise PreconditionError(
                    "Organization and project are required. Use --organization and --project."
                )

        lg = LocalGit(".")

        if not source_branch:
            source_branch = lg.current_branch()
            if not source_branch:
                raise PreconditionError(
                    "Could not determine current branch. Please specify with -s or --source-branch"
                )
            typer.echo(f"Using current branch as source: {source_branch}")

        if not lg.branch_exists(source_branch):
            raise PreconditionError(f"Source branch '{source_branch}' does not exist")

        if not repository:
            repository = lg.default_repository_name()
            if repository:
                typer.echo(f"Using repository from origin remote: {repository}")
            elif backend == Backend.api:
                raise PreconditionError(
                    "Could not determine repository. Please specify with --repository"
                )

        pr_draft = PullRequestDraft(
            source_branch=source_branch,
            target_branch=target_branch,
            title=title,
            description=description,
            is_draft=draft,
            reviewers=merge_reviewers(reviewers, required_reviewers),
            work_items=build_work_items(work_items),
        )

        if backend == Backend.api:
            provider = AzureDevOpsProvider(
                organization, project, repository, pat, api_version=api_version, timeout=timeout
            )
        else:
            provider = AzCliProvider(organization, project, repository)
            provider.ensure_ready(echo=typer.echo)
    except PreconditionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    echo_summary(pr_draft, auto_complete, delete_source_branch)

    try:
        pr = provider.create_pr(pr_draft)
    except PullRequestCreationError as e:
        echo_failure(e, backend)
        raise typer.Exit(code=1)
    except AdoprError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo("")
    typer.echo("Pull request created successfully!")
    if pr.id is not None:
        typer.echo(f"  ID: {pr.id}")
    if pr.web_url:
        typer.echo(f"  URL: {pr.web_url}")

    if auto_complete:
        if pr.id is None:
            typer.echo("Warning: no pull request id returned, auto-complete not enabled.", err=True)
        else:
            options = AutoCompleteOptions(
                delete_source_branch=delete_source_branch,
                transition_work_items=transition_work_items,
            )
            if provider.enable_auto_complete(pr.id, options):
                typer.echo("Auto-complete enabled.")
            else:
                typer.echo(
                    f"Warning: could not enable auto-complete on PR {pr.id}.", err=True
                )

    if open_browser and pr.web_url:
        open_in_browser(pr.web_url)


def echo_summary(pr_draft: PullRequestDraft, auto_complete: bool, delete_source_branch: bool):
    typer.echo("Creating pull request...")
    typer.echo(f"  Title: {pr_draft.title}")
    typer.echo(f"  Source: {pr_draft.source_branch}")
    typer.echo(f"  Target: {pr_draft.target_branch}")
    if pr_draft.description:
        typer.echo(f"  Description: {pr_draft.description}")
    if pr_draft.optional_reviewers:
        typer.echo(f"  Reviewers: {' '.join(r.id for r in pr_draft.optional_reviewers)}")
    if pr_draft.required_reviewers:
        typer.echo(
            f"  Required reviewers: {' '.join(r.id for r in pr_draft.required_reviewers)}"
        )
    if pr_draft.work_items:
        typer.echo(f"  Work items: {' '.join(w.id for w in pr_draft.work_items)}")
    if pr_draft.is_draft:
        typer.echo("  Draft: Yes")
    if auto_complete:
        typer.echo("  Auto-complete: Yes")
    if delete_source_branch:
        typer.echo("  Delete source branch: Yes")


def echo_failure(e: PullRequestCreationError, backend: Backend = Backend.api):
    typer.echo("", err=True)
    typer.echo("Error: Failed to create pull request", err=True)
    if e.status_code is not None:
        typer.echo(f"  Status: {e.status_code}", err=True)
    typer.echo(f"  Response: {e.body or e}", err=True)
    typer.echo("", err=True)
    typer.echo("Possible issues:", err=True)
    for issue in POSSIBLE_ISSUES:
        typer.echo(f"  - {issue}", err=True)
    if backend == Backend.az:
        typer.echo("", err=True)
        typer.echo(
            "Try running 'az devops configure --list' to check your current configuration",
            err=True,
        )


def open_in_browser(url: str):
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.debug("Browser open failed: %s", e)
        opened = False
    if not opened:
        typer.echo(f"Could not open a browser, visit {url}")


def main():
    # values already in the environment win over .env
    load_dotenv(find_dotenv(usecwd=True))
    app()


if __name__ == "__main__":
    main()
