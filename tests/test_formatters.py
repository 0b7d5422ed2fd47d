# tests/test_formatters.py

"""Unit tests for ReviewFormatter"""

from pr_buddy.models.review import (
    AIReviewResult,
    AssessmentTier,
    FileReview,
    Issue,
    ReviewSummary,
    Severity,
)
from pr_buddy.utils.formatters import ReviewFormatter


def _summary(file_reviews, overall_rating=4, tier=AssessmentTier.GREAT, **fields) -> ReviewSummary:
    return ReviewSummary(
        overall_rating=overall_rating,
        tier=tier,
        file_reviews=file_reviews,
        files_reviewed=sum(1 for r in file_reviews if r.succeeded),
        **fields
    )


class TestFormatReview:
    """Test suite for ReviewFormatter.format_review"""

    def test_greeting_and_footer(self, pr_info):
        body = ReviewFormatter.format_review(pr_info, _summary([]))

        assert body.startswith("Hey @octocat! 👋")
        assert "\"Add greeting helper\"" in body
        assert body.endswith("---\n*🤖 Reviewed by PR Buddy*")

    def test_assessment_per_tier(self, pr_info):
        great = ReviewFormatter.format_review(pr_info, _summary([], 5, AssessmentTier.GREAT))
        good = ReviewFormatter.format_review(pr_info, _summary([], 3, AssessmentTier.GOOD))
        poor = ReviewFormatter.format_review(pr_info, _summary([], 1, AssessmentTier.NEEDS_WORK))

        assert "**Great work!**" in great and "5/5" in great
        assert "**Pretty good overall!**" in good and "Rating: 3/5" in good
        assert "**Needs some work.**" in poor and "Rating: 1/5" in poor
        assert "**Next steps:**" in poor
        assert "**Ready to go!**" in great

    def test_file_with_issues_grouped_by_severity(self, pr_info):
        review = FileReview(
            filename="src/db.py",
            status="modified",
            result=AIReviewResult(
                rating=2,
                issues=[
                    Issue(description="Minor naming", severity=Severity.LOW),
                    Issue(description="SQL injection", severity=Severity.HIGH),
                    Issue(description="Missing error handling", severity=Severity.MEDIUM),
                ],
                suggestions=["Use parameterized queries", "Add logging"],
            ),
        )
        body = ReviewFormatter.format_review(
            pr_info, _summary([review], 2, AssessmentTier.NEEDS_WORK, total_issues=3, high_severity_issues=1)
        )

        assert "📝 **src/db.py** (2/5 stars):" in body
        assert "⚠️ **Critical issues:** SQL injection" in body
        assert "🔧 **Improvements needed:** Missing error handling" in body
        assert "💡 **Minor suggestions:** Minor naming" in body
        assert "💭 **My thoughts:** Use parameterized queries. Add logging" in body
        assert body.index("Critical issues") < body.index("Improvements needed") < body.index("Minor suggestions")
        assert "I found 1 critical issue that" in body

    def test_clean_file(self, pr_info):
        review = FileReview(
            filename="app.js", status="added", additions=12,
            result=AIReviewResult(rating=5, summary="Tidy code")
        )
        body = ReviewFormatter.format_review(pr_info, _summary([review], total_changes=12))

        assert "✅ **app.js** - Looks good! No issues found.\nTidy code" in body
        assert "**All clear!** No major issues found in your 12 lines of changes." in body

    def test_failed_file(self, pr_info):
        review = FileReview(filename="broken.py", status="modified", error="timeout")
        body = ReviewFormatter.format_review(pr_info, _summary([review], 3, AssessmentTier.GOOD))

        assert "❌ **broken.py** - Could not be reviewed: timeout" in body

    def test_totals_for_non_critical_issues(self, pr_info):
        review = FileReview(
            filename="a.py", status="modified",
            result=AIReviewResult(rating=3, issues=[Issue(description="Long line", severity="low")])
        )
        body = ReviewFormatter.format_review(
            pr_info, _summary([review], 3, AssessmentTier.GOOD, total_issues=1)
        )

        assert "Found 1 total suggestion across 1 file." in body
        assert "**Suggestion:**" in body


class TestStatusNotes:
    """Test suite for the no-files and error notes"""

    def test_no_reviewable_files(self, pr_info):
        body = ReviewFormatter.format_no_reviewable_files(pr_info, 1)

        assert "Hey @octocat!" in body
        assert "no reviewable files among the 1 changed file." in body
        assert "files that were not removed" in body
        assert "added or modified" not in body
        assert body.endswith("*🤖 Reviewed by PR Buddy*")

    def test_error_note(self, pr_info):
        body = ReviewFormatter.format_error(pr_info, "GitHub API rate limit exceeded")

        assert "❌ **Error**: GitHub API rate limit exceeded" in body
        assert "manually" in body
        assert body.endswith("*🤖 PR Buddy - Error Report*")
