"""Tests for the [deploy] / [skipdeploy] commit selection policy."""

import pytest
from structlog.testing import capture_logs

from deployer.schemas.payload import Commit
from deployer.services.commit_selector import HOOK_DEPLOY_KEY, HOOK_SKIP_KEY, select_commit


def _commits(*pairs: tuple[str, str]) -> list[Commit]:
    return [Commit(id=commit_id, message=message) for commit_id, message in pairs]


def test_marker_strings() -> None:
    assert HOOK_DEPLOY_KEY == "[deploy]"
    assert HOOK_SKIP_KEY == "[skipdeploy]"


class TestAutoDeploy:
    """Every commit deploys unless it carries [skipdeploy]."""

    def test_most_recent_commit_wins(self) -> None:
        commits = _commits(("a", "first"), ("b", "second"), ("c", "third"))

        assert select_commit(commits, auto_deploy=True) == "c"

    def test_skipped_head_falls_back_to_previous(self) -> None:
        commits = _commits(("a", "x"), ("b", "[skipdeploy] y"))

        assert select_commit(commits, auto_deploy=True) == "a"

    def test_all_skipped_returns_none(self) -> None:
        commits = _commits(("a", "[skipdeploy] x"), ("b", "wip [skipdeploy]"))

        assert select_commit(commits, auto_deploy=True) is None

    def test_deploy_marker_does_not_matter(self) -> None:
        commits = _commits(("a", "[deploy] release"), ("b", "plain"))

        assert select_commit(commits, auto_deploy=True) == "b"

    def test_each_skipped_commit_is_logged(self) -> None:
        commits = _commits(("a", "x"), ("b", "[skipdeploy]"), ("c", "[skipdeploy]"))

        with capture_logs() as logs:
            assert select_commit(commits, auto_deploy=True) == "a"

        skipped = [entry["commit"] for entry in logs if entry["event"] == "commit_skipped"]
        assert skipped == ["c", "b"]


class TestOptIn:
    """Only commits carrying [deploy] are deployed."""

    def test_no_marker_returns_none(self) -> None:
        commits = _commits(("a", "x"), ("b", "[skipdeploy] y"))

        assert select_commit(commits, auto_deploy=False) is None

    def test_single_marked_commit(self) -> None:
        commits = _commits(("a", "[deploy] release"))

        assert select_commit(commits, auto_deploy=False) == "a"

    def test_most_recent_marked_commit_wins(self) -> None:
        commits = _commits(
            ("a", "[deploy] v1"),
            ("b", "[deploy] v2"),
            ("c", "unmarked follow-up"),
        )

        assert select_commit(commits, auto_deploy=False) == "b"

    def test_marker_anywhere_in_message(self) -> None:
        commits = _commits(("a", "Release 2.0\n\n[deploy]"))

        assert select_commit(commits, auto_deploy=False) == "a"

    def test_non_matching_commits_are_logged(self) -> None:
        commits = _commits(("a", "[deploy]"), ("b", "x"))

        with capture_logs() as logs:
            select_commit(commits, auto_deploy=False)

        assert [entry["commit"] for entry in logs if entry["event"] == "commit_skipped"] == ["b"]


@pytest.mark.parametrize("auto_deploy", [True, False])
def test_empty_sequence_returns_none(auto_deploy: bool) -> None:
    assert select_commit([], auto_deploy=auto_deploy) is None
