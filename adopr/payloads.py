# payloads.py
"""
Request and response models for the Azure DevOps pull request API.

Everything here is pure data: drafts are validated on construction and
turned into plain dicts that are handed to a JSON encoder unchanged.
"""
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .exceptions import PreconditionError

REFS_HEADS = "refs/heads/"


@dataclass(frozen=True)
class ReviewerRef:
    id: str
    is_required: bool = False

    def to_payload(self) -> dict:
        if self.is_required:
            return {"id": self.id, "isRequired": True}
        return {"id": self.id}


@dataclass(frozen=True)
class WorkItemRef:
    id: str

    def to_payload(self) -> dict:
        return {"id": self.id}


@dataclass(frozen=True)
class PullRequestDraft:
    source_branch: str
    target_branch: str
    title: str
    description: str = ""
    is_draft: bool = False
    reviewers: tuple[ReviewerRef, ...] = field(default_factory=tuple)
    work_items: tuple[WorkItemRef, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.title:
            raise PreconditionError("Title is required.")
        if not self.source_branch:
            raise PreconditionError("Source branch is required.")
        if not self.target_branch:
            raise PreconditionError("Target branch is required.")
        if self.source_ref == self.target_ref:
            raise PreconditionError("Source and target branches cannot be the same")
        # accept lists from callers but keep the draft hashable
        object.__setattr__(self, "reviewers", tuple(self.reviewers))
        object.__setattr__(self, "work_items", tuple(self.work_items))

    @property
    def source_ref(self) -> str:
        return qualify_ref(self.source_branch)

    @property
    def target_ref(self) -> str:
        return qualify_ref(self.target_branch)

    @property
    def required_reviewers(self) -> list[ReviewerRef]:
        return [r for r in self.reviewers if r.is_required]

    @property
    def optional_reviewers(self) -> list[ReviewerRef]:
        return [r for r in self.reviewers if not r.is_required]

    def to_payload(self) -> dict:
        """Creation payload for POST .../pullrequests."""
        payload = {
            "sourceRefName": self.source_ref,
            "targetRefName": self.target_ref,
            "title": self.title,
        }
        if self.description:
            payload["description"] = self.description
        if self.is_draft:
            payload["isDraft"] = True
        if self.reviewers:
            payload["reviewers"] = [r.to_payload() for r in self.reviewers]
        if self.work_items:
            payload["workItemRefs"] = [w.to_payload() for w in self.work_items]
        return payload


@dataclass(frozen=True)
class AutoCompleteOptions:
    delete_source_branch: bool = False
    transition_work_items: bool = False
    # "me" is resolved by the service to the authenticated caller
    set_by: str = "me"

    def to_payload(self) -> dict:
        payload = {"autoCompleteSetBy": {"id": self.set_by}}
        completion = {}
        if self.delete_source_branch:
            completion["deleteSourceBranch"] = True
        if self.transition_work_items:
            completion["transitionWorkItems"] = True
        if completion:
            payload["completionOptions"] = completion
        return payload


@dataclass(frozen=True)
class CreatedPullRequest:
    id: Optional[int] = None
    web_url: Optional[str] = None

    @classmethod
    def from_response(cls, body) -> "CreatedPullRequest":
        """Parse a GitPullRequest JSON object; missing fields become None."""
        if not isinstance(body, dict):
            return cls()

        pr_id = body.get("pullRequestId")
        if isinstance(pr_id, bool) or not isinstance(pr_id, (int, str)):
            pr_id = None
        elif isinstance(pr_id, str):
            pr_id = int(pr_id) if pr_id.isdigit() else None

        web_url = None
        links = body.get("_links")
        if isinstance(links, dict):
            web = links.get("web")
            if isinstance(web, dict) and web.get("href"):
                web_url = web["href"]

        return cls(id=pr_id, web_url=web_url)


def qualify_ref(branch: str) -> str:
    if branch.startswith(REFS_HEADS):
        return branch
    return f"{REFS_HEADS}{branch}"


def split_identities(values: Optional[Iterable[str]]) -> list[str]:
    """
    Flatten CLI values into a list of identities.

    Each value may itself hold several identities separated by spaces or
    commas ("a@x.com b@x.com"). Order is kept, duplicates are dropped.
    """
    out: list[str] = []
    for value in values or []:
        for item in re.split(r"[\s,]+", value.strip()):
            if item and item not in out:
                out.append(item)
    return out


def merge_reviewers(
    reviewers: Optional[Iterable[str]] = None,
    required_reviewers: Optional[Iterable[str]] = None,
) -> tuple[ReviewerRef, ...]:
    """
    Union optional and required reviewers into a single ordered sequence.

    Optional reviewers come first, then required ones. An identity listed in
    both is kept once, flagged as required, at its first position.

    Duplicates are dropped, so the result holds fewer than
    len(reviewers) + len(required_reviewers) entries when the inputs repeat
    an identity, within a list or across both.
    """
    required = split_identities(required_reviewers)
    merged: dict[str, ReviewerRef] = {}
    for identity in split_identities(reviewers):
        merged[identity] = ReviewerRef(identity, is_required=identity in required)
    for identity in required:
        merged[identity] = ReviewerRef(identity, is_required=True)
    return tuple(merged.values())


def build_work_items(ids: Optional[Iterable[str]] = None) -> tuple[WorkItemRef, ...]:
    return tuple(WorkItemRef(i) for i in split_identities(ids))
