"""
Shared fixtures: a throwaway git repository and canned HTTP responses.
"""

from unittest.mock import Mock

import git
import pytest

ACTOR = git.Actor("Test User", "test@example.com")


@pytest.fixture
def git_repo(tmp_path):
    """Repository on branch 'main' with one commit, a 'feature/login' branch and an origin remote."""
    repo = git.Repo.init(tmp_path)
    (tmp_path / "README.md").write_text("hello\n")
    repo.index.add(["README.md"])
    repo.index.commit("initial commit", author=ACTOR, committer=ACTOR)
    repo.git.checkout("-B", "main")
    repo.git.branch("feature/login")
    repo.create_remote(
        "origin", "https://contoso@dev.azure.com/contoso/Fabrikam/_git/fabrikam-web"
    )
    return repo


def _response(status_code, json_body=None, text=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if json_body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text or ""
    else:
        response.json.return_value = json_body
        response.text = text if text is not None else str(json_body)
    return response


@pytest.fixture
def make_response():
    """Factory for requests.Response stand-ins."""
    return _response
