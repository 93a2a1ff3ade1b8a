"""Posts comments on pull requests."""
from __future__ import annotations

from ..log import get_logger
from .client import GitHubClient

logger = get_logger(__name__)


class PRCommenter:
    """Creates issue comments on pull requests.

    There is no deduplication: if GitHub redelivers a webhook, the comment
    is posted again.
    """

    async def post_comment(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        issue_number: int,
        body: str,
    ) -> dict:
        """Post a new comment on a pull request.

        Args:
            client: An installation-authenticated client.
            owner: Repository owner login.
            repo: Repository name.
            issue_number: Pull request number.
            body: Comment body in Markdown.

        Returns:
            GitHub API response as dict.

        Raises:
            HttpError: GitHub rejected the request (403, 404, 422, ...).
            NetworkError: The request did not reach GitHub.
        """
        comment = await client.post(
            f"/repos/{owner}/{repo}/issues/{issue_number}/comments",
            json={"body": body},
        )
        logger.info(
            "Commented on %s/%s#%s (comment %s)",
            owner, repo, issue_number, comment.get("id") if comment else None,
        )
        return comment
