# pr_buddy/utils/formatters.py

"""Output Formatters

Render review summaries and status notes as GitHub-flavored Markdown.
Formatting only: all numbers come precomputed in a ReviewSummary.
"""

from typing import List

from pr_buddy.models.github import PRInfo
from pr_buddy.models.review import (
    AssessmentTier,
    FileReview,
    ReviewSummary,
    Severity,
)

FOOTER = "---\n*🤖 Reviewed by PR Buddy*"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


class ReviewFormatter:
    """Format PR review comments"""

    SEVERITY_HEADINGS = {
        Severity.HIGH: "⚠️ **Critical issues:**",
        Severity.MEDIUM: "🔧 **Improvements needed:**",
        Severity.LOW: "💡 **Minor suggestions:**",
    }

    @classmethod
    def format_review(cls, pr_info: PRInfo, summary: ReviewSummary) -> str:
        """
        Format the aggregated review posted on a PR

        Args:
            pr_info: PR being reviewed
            summary: Aggregated review data

        Returns:
            Markdown review body
        """
        sections = [
            f"Hey @{pr_info.author}! 👋",
            "",
            f"I just finished reviewing your PR \"{pr_info.title}\" and here's what I found:",
            "",
            cls._format_assessment(summary),
            "",
        ]

        for file_review in summary.file_reviews:
            sections.append(cls._format_file(file_review))
            sections.append("")

        sections.append(cls._format_totals(summary))
        sections.append("")
        sections.append(cls._format_next_step(summary))
        sections.append("")
        sections.append("Keep up the good work! 🎉")
        sections.append("")
        sections.append(FOOTER)

        return "\n".join(sections)

    @classmethod
    def _format_assessment(cls, summary: ReviewSummary) -> str:
        rating = summary.overall_rating
        if summary.tier == AssessmentTier.GREAT:
            return f"🎉 **Great work!** Your code looks really solid. I'm giving this a {rating}/5 rating."
        if summary.tier == AssessmentTier.GOOD:
            return (
                "👍 **Pretty good overall!** There are a few things to clean up, "
                f"but you're on the right track. Rating: {rating}/5."
            )
        return (
            "⚠️ **Needs some work.** I found several issues that should be addressed "
            f"before merging. Rating: {rating}/5."
        )

    @classmethod
    def _format_file(cls, file_review: FileReview) -> str:
        if not file_review.succeeded:
            return f"❌ **{file_review.filename}** - Could not be reviewed: {file_review.error}"

        result = file_review.result
        if not result.issues:
            line = f"✅ **{file_review.filename}** - Looks good! No issues found."
            if result.summary:
                line += f"\n{result.summary}"
            return line

        lines: List[str] = [f"📝 **{file_review.filename}** ({result.rating}/5 stars):"]
        for severity in (Severity.HIGH, Severity.MEDIUM, Severity.LOW):
            issues = result.issues_by_severity(severity)
            if issues:
                descriptions = ", ".join(issue.description for issue in issues)
                lines.append(f"{cls.SEVERITY_HEADINGS[severity]} {descriptions}")

        if result.suggestions:
            lines.append(f"💭 **My thoughts:** {'. '.join(result.suggestions)}")

        return "\n".join(lines)

    @classmethod
    def _format_totals(cls, summary: ReviewSummary) -> str:
        if summary.high_severity_issues > 0:
            return (
                f"🚨 **Important:** I found {_plural(summary.high_severity_issues, 'critical issue')} "
                "that should be fixed before merging."
            )
        if summary.total_issues > 0:
            return (
                f"📋 **Summary:** Found {_plural(summary.total_issues, 'total suggestion')} "
                f"across {_plural(len(summary.file_reviews), 'file')}."
            )
        return (
            f"🎯 **All clear!** No major issues found in your "
            f"{_plural(summary.total_changes, 'line')} of changes."
        )

    @classmethod
    def _format_next_step(cls, summary: ReviewSummary) -> str:
        if summary.overall_rating <= 2:
            return "🔄 **Next steps:** Please address the critical issues above before requesting another review."
        if summary.overall_rating <= 3:
            return "👀 **Suggestion:** Consider fixing the medium-priority items when you have a chance."
        return "🚀 **Ready to go!** This looks good for merging once any final feedback is addressed."

    @classmethod
    def format_no_reviewable_files(cls, pr_info: PRInfo, total_files: int) -> str:
        """Informational note for PRs with nothing the reviewer can read"""
        return "\n".join([
            f"Hey @{pr_info.author}! 👋",
            "",
            f"I looked at your PR \"{pr_info.title}\" but found no reviewable files "
            f"among the {_plural(total_files, 'changed file')}.",
            "",
            "I only review source files that were not removed, are not binary "
            "and are not too large to review in one go.",
            "",
            FOOTER,
        ])

    @classmethod
    def format_error(cls, pr_info: PRInfo, error_message: str) -> str:
        """Apologetic note posted when the review could not be completed"""
        return "\n".join([
            f"Hey @{pr_info.author}! 👋",
            "",
            f"I tried to review your PR \"{pr_info.title}\" but ran into some technical issues.",
            "",
            f"❌ **Error**: {error_message}",
            "",
            "A maintainer will need to review this PR manually. "
            "Please contact support if this keeps happening.",
            "",
            "---",
            "*🤖 PR Buddy - Error Report*",
        ])
