"""Commit-message policy deciding which commit of a push gets deployed.

Two mutually exclusive modes, picked by ``auto_deploy``:

- auto-deploy: every commit deploys unless its message carries ``[skipdeploy]``
- opt-in: only commits whose message carries ``[deploy]`` deploy

Either way the most recent qualifying commit wins, so intermediate commits
of a push are never checked out on their own.
"""

from collections.abc import Sequence

import structlog

from deployer.schemas.payload import Commit

logger = structlog.get_logger()

HOOK_DEPLOY_KEY = "[deploy]"
HOOK_SKIP_KEY = "[skipdeploy]"


def select_commit(commits: Sequence[Commit], auto_deploy: bool) -> str | None:
    """Return the id of the commit to deploy, or None when nothing qualifies.

    Args:
        commits: Commits in delivery order, oldest first.
        auto_deploy: Selects the policy described in the module docstring.
    """
    for commit in reversed(commits):
        if auto_deploy:
            qualifies = HOOK_SKIP_KEY not in commit.message
        else:
            qualifies = HOOK_DEPLOY_KEY in commit.message
        if qualifies:
            return commit.id
        logger.info("commit_skipped", commit=commit.id)
    return None
