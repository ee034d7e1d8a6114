# local_git.py
from pathlib import Path
from typing import Optional

import git

from .exceptions import PreconditionError


class LocalGit:
    def __init__(self, path: str = "."):
        try:
            self.repo = git.Repo(path, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise PreconditionError("Not in a git repository")

        if self.repo.bare:
            raise PreconditionError("Not in a git repository")

        # repo root (folder containing .git)
        self.repo_root = Path(self.repo.git.rev_parse("--show-toplevel"))

    def get_repo_root(self) -> Path:
        return self.repo_root

    def current_branch(self) -> Optional[str]:
        """Name of the checked out branch, None on a detached HEAD."""
        if self.repo.head.is_detached:
            return None
        return self.repo.active_branch.name

    def branch_exists(self, name: str) -> bool:
        try:
            self.repo.git.rev_parse("--verify", "--quiet", name)
        except git.exc.GitCommandError:
            return False
        return True

    def remote_url(self, name: str = "origin") -> Optional[str]:
        try:
            return self.repo.remote(name).url
        except ValueError:
            return None

    def default_repository_name(self) -> Optional[str]:
        """Repository name taken from the origin URL: last path segment without .git."""
        url = self.remote_url()
        if not url:
            return None
        return repository_name_from_url(url)


def repository_name_from_url(url: str) -> Optional[str]:
    # handles https://host/org/project/_git/repo and git@ssh.host:v3/org/project/repo
    tail = url.rstrip("/").replace(":", "/").rsplit("/", 1)[-1]
    if tail.endswith(".git"):
        tail = tail[: -len(".git")]
    return tail or None
