"""
Tests for the pull request payload models.

Covers:
    - creation payload required and optional keys
    - reviewer merging (optional + required)
    - auto-complete payload
    - parsing of created pull request responses
"""

import json

import pytest

from adopr.exceptions import PreconditionError
from adopr.payloads import (
    AutoCompleteOptions,
    CreatedPullRequest,
    PullRequestDraft,
    ReviewerRef,
    WorkItemRef,
    build_work_items,
    merge_reviewers,
    split_identities,
)


def make_draft(**kwargs):
    values = {"source_branch": "feature/login", "target_branch": "main", "title": "Add login"}
    values.update(kwargs)
    return PullRequestDraft(**values)


# ============================================================================
# PullRequestDraft
# ============================================================================


class TestPullRequestDraft:
    def test_minimal_payload(self):
        assert make_draft().to_payload() == {
            "sourceRefName": "refs/heads/feature/login",
            "targetRefName": "refs/heads/main",
            "title": "Add login",
        }

    @pytest.mark.parametrize(
        "source,target",
        [("dev", "main"), ("feature/a/b", "release/1.0"), ("hotfix-12", "develop")],
    )
    def test_refs_are_qualified(self, source, target):
        payload = make_draft(source_branch=source, target_branch=target).to_payload()
        assert payload["sourceRefName"] == "refs/heads/" + source
        assert payload["targetRefName"] == "refs/heads/" + target

    def test_already_qualified_ref_is_not_prefixed_twice(self):
        draft = make_draft(source_branch="refs/heads/dev")
        assert draft.source_ref == "refs/heads/dev"

    def test_empty_description_is_omitted(self):
        assert "description" not in make_draft(description="").to_payload()

    def test_description_is_verbatim(self):
        text = 'Fixes "quoted" issue #123\nwith a newline & \\ backslash'
        assert make_draft(description=text).to_payload()["description"] == text

    def test_is_draft_only_when_set(self):
        assert make_draft(is_draft=True).to_payload()["isDraft"] is True
        assert "isDraft" not in make_draft(is_draft=False).to_payload()

    def test_reviewers_and_work_items_only_when_supplied(self):
        payload = make_draft().to_payload()
        assert "reviewers" not in payload
        assert "workItemRefs" not in payload

    def test_work_items(self):
        payload = make_draft(work_items=build_work_items(["12 34"])).to_payload()
        assert payload["workItemRefs"] == [{"id": "12"}, {"id": "34"}]

    def test_quotes_in_title_serialize_to_valid_json(self):
        payload = make_draft(title='Say "hello"').to_payload()
        assert json.loads(json.dumps(payload))["title"] == 'Say "hello"'

    def test_building_twice_is_identical(self):
        kwargs = dict(
            description="desc",
            is_draft=True,
            reviewers=merge_reviewers(["a@x.com"], ["b@x.com"]),
            work_items=build_work_items(["1"]),
        )
        first = make_draft(**kwargs).to_payload()
        second = make_draft(**kwargs).to_payload()
        assert json.loads(json.dumps(first)) == json.loads(json.dumps(second))

    def test_lists_are_stored_as_tuples(self):
        draft = make_draft(reviewers=[ReviewerRef("a")], work_items=[WorkItemRef("1")])
        assert draft.reviewers == (ReviewerRef("a"),)
        assert draft.work_items == (WorkItemRef("1"),)

    def test_missing_title(self):
        with pytest.raises(PreconditionError, match="Title is required"):
            make_draft(title="")

    def test_same_source_and_target(self):
        with pytest.raises(PreconditionError, match="cannot be the same"):
            make_draft(source_branch="main", target_branch="main")

    def test_same_branch_qualified_on_one_side(self):
        with pytest.raises(PreconditionError):
            make_draft(source_branch="refs/heads/main", target_branch="main")

    def test_missing_branches(self):
        with pytest.raises(PreconditionError):
            make_draft(source_branch="")
        with pytest.raises(PreconditionError):
            make_draft(target_branch="")


# ============================================================================
# Reviewers
# ============================================================================


class TestMergeReviewers:
    def test_union_of_optional_and_required(self):
        reviewers = merge_reviewers(["a@x.com b@x.com"], ["c@x.com", "d@x.com"])
        payload = make_draft(reviewers=reviewers).to_payload()
        assert payload["reviewers"] == [
            {"id": "a@x.com"},
            {"id": "b@x.com"},
            {"id": "c@x.com", "isRequired": True},
            {"id": "d@x.com", "isRequired": True},
        ]

    def test_only_required(self):
        assert merge_reviewers(None, ["c@x.com"]) == (ReviewerRef("c@x.com", True),)

    def test_only_optional(self):
        assert merge_reviewers(["a@x.com"], None) == (ReviewerRef("a@x.com"),)

    def test_identity_in_both_lists_is_required_once(self):
        reviewers = merge_reviewers(["a@x.com b@x.com"], ["a@x.com"])
        assert reviewers == (ReviewerRef("a@x.com", True), ReviewerRef("b@x.com"))

    def test_nothing_supplied(self):
        assert merge_reviewers() == ()


class TestSplitIdentities:
    def test_spaces_commas_and_repeats(self):
        assert split_identities(["a b", "c,d", " e ,  f "]) == ["a", "b", "c", "d", "e", "f"]

    def test_duplicates_dropped(self):
        assert split_identities(["a a", "a"]) == ["a"]

    def test_none(self):
        assert split_identities(None) == []


# ============================================================================
# AutoCompleteOptions
# ============================================================================


class TestAutoCompleteOptions:
    def test_default(self):
        assert AutoCompleteOptions().to_payload() == {"autoCompleteSetBy": {"id": "me"}}

    def test_delete_source_branch(self):
        assert AutoCompleteOptions(delete_source_branch=True).to_payload() == {
            "autoCompleteSetBy": {"id": "me"},
            "completionOptions": {"deleteSourceBranch": True},
        }

    def test_transition_work_items(self):
        payload = AutoCompleteOptions(transition_work_items=True).to_payload()
        assert payload["completionOptions"] == {"transitionWorkItems": True}


# ============================================================================
# CreatedPullRequest
# ============================================================================


class TestCreatedPullRequest:
    def test_id_and_web_url(self):
        body = {
            "pullRequestId": 42,
            "_links": {"web": {"href": "https://dev.azure.com/x/y/_git/z/pullrequest/42"}},
        }
        assert CreatedPullRequest.from_response(body) == CreatedPullRequest(
            id=42, web_url="https://dev.azure.com/x/y/_git/z/pullrequest/42"
        )

    def test_missing_web_link(self):
        assert CreatedPullRequest.from_response({"pullRequestId": 7}) == CreatedPullRequest(7)

    def test_missing_id(self):
        assert CreatedPullRequest.from_response({"status": "active"}).id is None

    def test_not_a_dict(self):
        assert CreatedPullRequest.from_response(["nope"]) == CreatedPullRequest()


class TestMergeReviewersCounts:
    def test_distinct_identities_give_all_entries(self):
        reviewers = merge_reviewers(["a b c"], ["d e"])
        assert len(reviewers) == 5
        assert [r.is_required for r in reviewers] == [False, False, False, True, True]

    def test_repeated_identity_is_collapsed(self):
        assert len(merge_reviewers(["a a b"], ["b"])) == 2
