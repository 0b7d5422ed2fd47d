# pr_buddy/services/pr_processor.py

"""PR Processing Orchestration Service

Runs one end-to-end review of a pull request:
1. Skip private repositories
2. List changed files from GitHub
3. Select reviewable files
4. Review each file with the AI (one file failing never stops the others)
5. Aggregate per-file results into one PR-level summary
6. Post the summary as a single COMMENT review

Any failure fatal to the PR ends in a best-effort error comment and a
manual-review label. Nothing is retried or persisted.
"""

from typing import Any, Dict, List, Optional, Tuple
import asyncio
import logging
import math
import time

from pr_buddy.core.config import Settings, settings
from pr_buddy.core.exceptions import GitHubServiceError, PRBuddyException
from pr_buddy.models.github import ChangedFile, FileStatus, PRInfo
from pr_buddy.models.review import (
    DEFAULT_RATING,
    AssessmentTier,
    FileReview,
    ProcessingResult,
    ProcessingStatus,
    ReviewSource,
    ReviewSummary,
    Severity,
)
from pr_buddy.services.github_service import GitHubService, filter_reviewable_files
from pr_buddy.services.llm_service import LLMService
from pr_buddy.utils.formatters import ReviewFormatter

logger = logging.getLogger(__name__)

FULL_CONTENT_STATUSES = (FileStatus.ADDED, FileStatus.MODIFIED)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def assessment_tier(rating: int) -> AssessmentTier:
    if rating >= 4:
        return AssessmentTier.GREAT
    if rating >= 3:
        return AssessmentTier.GOOD
    return AssessmentTier.NEEDS_WORK


def aggregate_reviews(file_reviews: List[FileReview]) -> ReviewSummary:
    """
    Combine per-file reviews into a PR-level summary

    The overall rating is the mean of the files that were actually scored,
    rounded half up, or the default rating when none were.

    Args:
        file_reviews: Reviews in listing order

    Returns:
        ReviewSummary keeping the given order
    """
    scored = [review.result for review in file_reviews if review.succeeded]

    if scored:
        overall_rating = _round_half_up(sum(result.rating for result in scored) / len(scored))
    else:
        overall_rating = DEFAULT_RATING

    return ReviewSummary(
        overall_rating=overall_rating,
        tier=assessment_tier(overall_rating),
        total_issues=sum(len(result.issues) for result in scored),
        high_severity_issues=sum(len(result.issues_by_severity(Severity.HIGH)) for result in scored),
        total_changes=sum(review.additions + review.deletions for review in file_reviews),
        files_reviewed=len(scored),
        files_failed=len(file_reviews) - len(scored),
        file_reviews=list(file_reviews),
    )


class PRProcessingService:
    """Coordinates GitHub and the AI reviewer for one PR at a time"""

    def __init__(
        self,
        github_service: GitHubService,
        llm_service: LLMService,
        config: Settings = settings
    ):
        self.github_service = github_service
        self.llm_service = llm_service
        self.supported_extensions = list(config.SUPPORTED_EXTENSIONS)
        self.max_file_changes = config.MAX_FILE_CHANGES
        self.max_files = config.MAX_FILES_PER_PR
        self.max_file_size_bytes = config.MAX_FILE_SIZE_BYTES
        self.max_concurrent_reviews = config.MAX_CONCURRENT_REVIEWS
        self.manual_review_label = config.MANUAL_REVIEW_LABEL
        self.reviewed_label = config.REVIEWED_LABEL
        logger.info("PRProcessingService initialized")

    async def process_pr(self, pr_info: PRInfo) -> ProcessingResult:
        """
        Review a pull request and post the outcome

        Never raises; the outcome is returned for logging and tests only.

        Args:
            pr_info: PR extracted from the webhook

        Returns:
            ProcessingResult describing the terminal state
        """
        if not pr_info.is_public:
            logger.info(f"Skipping private repository PR {pr_info.reference}")
            return self._result(pr_info, ProcessingStatus.SKIPPED)

        start_time = time.time()
        logger.info(f"Processing PR {pr_info.reference}: {pr_info.title}")

        try:
            result = await self._run_review(pr_info)
        except Exception as e:
            message = e.message if isinstance(e, PRBuddyException) else str(e)
            logger.error(f"Error processing PR: {message}", exc_info=True, extra={"pr": pr_info.reference})
            result = await self._handle_failure(pr_info, message)

        logger.info(
            f"Finished PR {pr_info.reference} in {time.time() - start_time:.2f}s - "
            f"status={result.status.value}"
        )
        return result

    async def _run_review(self, pr_info: PRInfo) -> ProcessingResult:
        files = await self.github_service.list_changed_files(
            pr_info.owner, pr_info.repo, pr_info.pull_number
        )

        reviewable = filter_reviewable_files(
            files,
            self.supported_extensions,
            max_file_changes=self.max_file_changes,
            max_files=self.max_files
        )
        logger.info(f"{len(reviewable)} of {len(files)} files are reviewable in PR {pr_info.reference}")

        if not reviewable:
            comment_id = await self.github_service.post_comment(
                pr_info.owner,
                pr_info.repo,
                pr_info.pull_number,
                ReviewFormatter.format_no_reviewable_files(pr_info, len(files))
            )
            return self._result(pr_info, ProcessingStatus.NO_FILES, comment_id=comment_id)

        file_reviews = await self._review_files(pr_info, reviewable)
        summary = aggregate_reviews(file_reviews)
        body = ReviewFormatter.format_review(pr_info, summary)

        review_id = await self.github_service.post_review(
            pr_info.owner, pr_info.repo, pr_info.pull_number, body
        )

        if self.reviewed_label:
            await self.github_service.add_label(
                pr_info.owner, pr_info.repo, pr_info.pull_number, self.reviewed_label
            )

        return self._result(
            pr_info,
            ProcessingStatus.REVIEWED,
            review_id=review_id,
            overall_rating=summary.overall_rating,
            files_reviewed=summary.files_reviewed
        )

    async def _review_files(self, pr_info: PRInfo, files: List[ChangedFile]) -> List[FileReview]:
        """Review files with bounded concurrency; results keep the input order"""
        semaphore = asyncio.Semaphore(self.max_concurrent_reviews)

        async def _bounded(file: ChangedFile) -> FileReview:
            async with semaphore:
                return await self._review_file(pr_info, file)

        return list(await asyncio.gather(*(_bounded(file) for file in files)))

    async def _review_file(self, pr_info: PRInfo, file: ChangedFile) -> FileReview:
        review = FileReview(
            filename=file.filename,
            status=file.status.value,
            additions=file.additions,
            deletions=file.deletions,
        )

        try:
            content, source = await self._select_content(pr_info, file)
            if content is None:
                review.error = "No content or diff available"
                logger.warning(f"Nothing to review for {file.filename} in PR {pr_info.reference}")
                return review

            review.source = source
            review.result = await self.llm_service.analyze(file.filename, content, source=source.value)
        except Exception as e:
            logger.error(f"Failed to review file: {e}", extra={"pr": pr_info.reference, "file": file.filename})
            review.error = str(e) or type(e).__name__

        return review

    async def _select_content(
        self,
        pr_info: PRInfo,
        file: ChangedFile
    ) -> Tuple[Optional[str], Optional[ReviewSource]]:
        """Prefer the full file at the head commit, fall back to the patch"""
        if file.status in FULL_CONTENT_STATUSES:
            try:
                content = await self.github_service.get_file_content(
                    pr_info.owner, pr_info.repo, file.filename, pr_info.head_sha
                )
                if len(content.encode("utf-8")) > self.max_file_size_bytes:
                    logger.info(f"{file.filename} exceeds {self.max_file_size_bytes} bytes, using patch")
                elif content.strip():
                    return content, ReviewSource.CONTENT
            except GitHubServiceError as e:
                logger.warning(f"Could not fetch content of {file.filename}, using patch: {e.message}")

        if file.patch:
            return file.patch, ReviewSource.PATCH
        return None, None

    async def _handle_failure(self, pr_info: PRInfo, error_message: str) -> ProcessingResult:
        """Best-effort error comment and manual-review label; failures are only logged"""
        comment_id = None
        try:
            comment_id = await self.github_service.post_comment(
                pr_info.owner,
                pr_info.repo,
                pr_info.pull_number,
                ReviewFormatter.format_error(pr_info, error_message)
            )
        except Exception as e:
            logger.error(f"Failed to post error comment on PR {pr_info.reference}: {e}")

        if self.manual_review_label:
            try:
                await self.github_service.add_label(
                    pr_info.owner, pr_info.repo, pr_info.pull_number, self.manual_review_label
                )
            except Exception as e:
                logger.error(f"Failed to add manual review label on PR {pr_info.reference}: {e}")

        return self._result(pr_info, ProcessingStatus.FAILED, comment_id=comment_id, error=error_message)

    @staticmethod
    def _result(pr_info: PRInfo, status: ProcessingStatus, **fields: Any) -> ProcessingResult:
        return ProcessingResult(
            status=status,
            pull_number=pr_info.pull_number,
            repository=pr_info.full_name,
            **fields
        )

    async def get_health_status(self) -> Dict[str, Any]:
        """Get health status of the downstream services"""
        ai_status = self.llm_service.get_status()

        return {
            "github": "connected" if self.github_service.is_configured else "not_configured",
            "ai": {
                "provider": ai_status["provider"],
                "status": "ready" if ai_status["configured"] else "not_configured",
                "model": ai_status["model"]
            }
        }
