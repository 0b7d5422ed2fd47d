# pr_buddy/services/github_service.py

"""GitHub Service

Direct GitHub API integration using PyGithub for listing PR files, reading
file content, and posting reviews, comments and labels. PyGithub is
synchronous, so every call is pushed to the default thread pool to keep the
event loop free.
"""

from collections import OrderedDict
from typing import Iterable, List, Optional, Tuple
import asyncio
import logging
import posixpath
from functools import partial

from github import Auth, Github, GithubException, UnknownObjectException

from pr_buddy.core.exceptions import GitHubNotFoundError, GitHubServiceError
from pr_buddy.models.github import ChangedFile, FileStatus

logger = logging.getLogger(__name__)

REVIEW_EVENT = "COMMENT"

# Recently fetched pull requests, reused by later calls on the same PR
PULL_CACHE_SIZE = 32

BINARY_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".pdf",
    ".zip", ".gz", ".tar", ".jar", ".war", ".exe", ".dll", ".so", ".dylib",
    ".class", ".pyc", ".woff", ".woff2", ".ttf", ".eot", ".mp3", ".mp4",
}


def _extension(filename: str) -> str:
    return posixpath.splitext(filename)[1].lower()


def is_binary_file(file: ChangedFile) -> bool:
    """
    Best guess at whether a changed file is binary

    GitHub omits the patch for binary files, but it also omits it for very
    large diffs, so a missing patch only counts when no lines changed.
    """
    if file.binary is not None:
        return file.binary
    if _extension(file.filename) in BINARY_EXTENSIONS:
        return True
    return (
        file.status != FileStatus.REMOVED
        and file.patch is None
        and file.additions == 0
        and file.deletions == 0
    )


def filter_reviewable_files(
    files: Iterable[ChangedFile],
    supported_extensions: Iterable[str],
    max_file_changes: int = 500,
    max_files: int = 50
) -> List[ChangedFile]:
    """
    Select the files worth sending to the AI reviewer

    Drops removed files, binary files, files with more than
    ``max_file_changes`` changed lines and files with an unsupported
    extension, then keeps the first ``max_files`` in their original order.

    Args:
        files: Files as listed by GitHub
        supported_extensions: Allowed extensions including the dot (".py")
        max_file_changes: Largest change count still reviewed
        max_files: Maximum number of files returned

    Returns:
        Reviewable files, order preserved
    """
    allowed = {ext.lower() for ext in supported_extensions}
    reviewable = []

    for file in files:
        if file.status == FileStatus.REMOVED:
            logger.debug(f"Skipping removed file: {file.filename}")
            continue
        if is_binary_file(file):
            logger.debug(f"Skipping binary file: {file.filename}")
            continue
        if file.changes > max_file_changes:
            logger.info(f"Skipping {file.filename}: {file.changes} changes exceeds limit of {max_file_changes}")
            continue
        if _extension(file.filename) not in allowed:
            logger.debug(f"Skipping unsupported file type: {file.filename}")
            continue
        reviewable.append(file)

    if len(reviewable) > max_files:
        logger.info(f"Limiting review to first {max_files} of {len(reviewable)} reviewable files")

    return reviewable[:max_files]


class GitHubService:
    """GitHub API Integration Service"""

    def __init__(self, token: str, timeout: int = 10):
        self.token = token
        self.timeout = timeout
        self._client: Optional[Github] = None
        self._pulls: "OrderedDict[Tuple[str, str, int], object]" = OrderedDict()
        if token:
            self._client = Github(auth=Auth.Token(token), timeout=timeout)
            logger.info(f"GitHub client created (timeout={timeout}s)")
        else:
            logger.warning("GitHub client not created - no token configured")

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def close(self) -> None:
        """Release the underlying HTTP session"""
        self._pulls.clear()
        if self._client:
            try:
                self._client.close()
                logger.info("GitHub client closed successfully")
            except Exception as e:
                logger.warning(f"Error closing GitHub client: {e}")

    def _require_client(self) -> Github:
        if not self._client:
            raise GitHubServiceError("GitHub client not initialized - GITHUB_TOKEN is missing")
        return self._client

    async def _run_sync(self, func, *args, **kwargs):
        """
        Run a synchronous function in a thread pool to avoid blocking the event loop

        Args:
            func: Synchronous function to run
            *args, **kwargs: Arguments to pass to the function

        Returns:
            Result of the function
        """
        loop = asyncio.get_event_loop()
        if args or kwargs:
            return await loop.run_in_executor(None, partial(func, *args, **kwargs))
        return await loop.run_in_executor(None, func)

    async def _get_pull(self, owner: str, repo: str, pull_number: int):
        key = (owner, repo, pull_number)
        if key in self._pulls:
            self._pulls.move_to_end(key)
            return self._pulls[key]

        client = self._require_client()
        repository = await self._run_sync(client.get_repo, f"{owner}/{repo}", lazy=True)
        pr = await self._run_sync(repository.get_pull, pull_number)

        self._pulls[key] = pr
        if len(self._pulls) > PULL_CACHE_SIZE:
            self._pulls.popitem(last=False)
        return pr

    async def list_changed_files(
        self,
        owner: str,
        repo: str,
        pull_number: int
    ) -> List[ChangedFile]:
        """
        List changed files in a PR

        Args:
            owner: Repository owner
            repo: Repository name
            pull_number: PR number

        Returns:
            List of ChangedFile models in GitHub's order

        Raises:
            GitHubServiceError: If fetching fails for any reason
        """
        try:
            logger.info(f"Fetching files for PR {owner}/{repo}#{pull_number}")

            pr = await self._get_pull(owner, repo, pull_number)
            # Pagination makes further requests while iterating
            files = await self._run_sync(lambda: list(pr.get_files()))

            changed_files = [
                ChangedFile(
                    filename=file.filename,
                    status=FileStatus(file.status),
                    additions=file.additions,
                    deletions=file.deletions,
                    changes=file.changes,
                    patch=file.patch,
                )
                for file in files
            ]

            logger.info(f"Found {len(changed_files)} files in PR {owner}/{repo}#{pull_number}")
            return changed_files
        except GitHubServiceError:
            raise
        except GithubException as e:
            logger.error(f"Failed to fetch PR files: {e.status} {e.data}")
            raise GitHubServiceError(f"Failed to fetch PR files: {e}", status=e.status)
        except Exception as e:
            logger.error(f"Failed to fetch PR files: {type(e).__name__}: {e}")
            raise GitHubServiceError(f"Failed to fetch PR files: {e}")

    async def get_file_content(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str
    ) -> str:
        """
        Get file content at a specific commit

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path
            ref: Commit SHA (or branch/tag)

        Returns:
            File content as text

        Raises:
            GitHubNotFoundError: If the path does not exist at ref
            GitHubServiceError: If fetching or decoding fails
        """
        client = self._require_client()

        try:
            logger.debug(f"Fetching file content: {owner}/{repo}/{path} (ref={ref})")
            repository = await self._run_sync(client.get_repo, f"{owner}/{repo}", lazy=True)
            contents = await self._run_sync(repository.get_contents, path, ref=ref)
        except UnknownObjectException:
            raise GitHubNotFoundError(f"File not found: {path}@{ref}", status=404)
        except GithubException as e:
            logger.warning(f"Failed to fetch file content for {path}: {e.status}")
            raise GitHubServiceError(f"Failed to fetch file content: {e}", status=e.status)
        except Exception as e:
            logger.warning(f"Failed to fetch file content for {path}: {type(e).__name__}: {e}")
            raise GitHubServiceError(f"Failed to fetch file content: {e}")

        if isinstance(contents, list):
            raise GitHubNotFoundError(f"Path is a directory, not a file: {path}@{ref}", status=404)

        try:
            return contents.decoded_content.decode("utf-8")
        except Exception as e:
            # Files over 1MB come back without inline content
            raise GitHubServiceError(f"Could not decode content of {path}: {e}")

    async def post_review(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        body: str
    ) -> int:
        """
        Post a summary review with event COMMENT (never approves or blocks)

        Args:
            owner: Repository owner
            repo: Repository name
            pull_number: PR number
            body: Markdown review body

        Returns:
            Review ID

        Raises:
            GitHubServiceError: If posting fails
        """
        try:
            logger.info(f"Posting summary review for PR {owner}/{repo}#{pull_number}")
            pr = await self._get_pull(owner, repo, pull_number)
            review = await self._run_sync(pr.create_review, body=body, event=REVIEW_EVENT)
            logger.info(f"Summary review posted! Review ID: {review.id}")
            return review.id
        except GitHubServiceError:
            raise
        except GithubException as e:
            logger.error(f"Failed to post summary review: {e.status} {e.data}")
            raise GitHubServiceError(f"Failed to post review: {e}", status=e.status)
        except Exception as e:
            logger.error(f"Failed to post summary review: {type(e).__name__}: {e}")
            raise GitHubServiceError(f"Failed to post review: {e}")

    async def post_comment(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        body: str
    ) -> int:
        """
        Post a plain conversation comment on a PR

        Args:
            owner: Repository owner
            repo: Repository name
            pull_number: PR number
            body: Markdown comment body

        Returns:
            Comment ID

        Raises:
            GitHubServiceError: If posting fails
        """
        try:
            logger.info(f"Posting comment to PR {owner}/{repo}#{pull_number}")
            pr = await self._get_pull(owner, repo, pull_number)
            comment = await self._run_sync(pr.create_issue_comment, body)
            logger.info(f"Comment posted successfully! Comment ID: {comment.id}")
            return comment.id
        except GitHubServiceError:
            raise
        except GithubException as e:
            logger.error(f"Failed to post comment: {e.status} {e.data}")
            raise GitHubServiceError(f"Failed to post comment: {e}", status=e.status)
        except Exception as e:
            logger.error(f"Failed to post comment: {type(e).__name__}: {e}")
            raise GitHubServiceError(f"Failed to post comment: {e}")

    async def add_label(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        label: str
    ) -> bool:
        """
        Add a label to a PR (best-effort)

        Args:
            owner: Repository owner
            repo: Repository name
            pull_number: PR number
            label: Label name; GitHub creates it if missing

        Returns:
            True if the label was applied, False otherwise
        """
        try:
            pr = await self._get_pull(owner, repo, pull_number)
            await self._run_sync(pr.add_to_labels, label)
            logger.info(f"Added label '{label}' to PR {owner}/{repo}#{pull_number}")
            return True
        except Exception as e:
            logger.warning(f"Failed to add label '{label}' to PR {owner}/{repo}#{pull_number}: {e}")
            return False  # Labels are optional
