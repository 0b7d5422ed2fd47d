# tests/factories.py

"""Builders for test data shared across test modules"""

from pr_buddy.core.config import Settings
from pr_buddy.models.github import ChangedFile, FileStatus

TEST_SECRET = "test-secret"

SAMPLE_PATCH = """@@ -0,0 +1,3 @@
+function greet(name) {
+  return 'Hello ' + name
+}"""


def make_settings(**overrides) -> Settings:
    values = {
        "GITHUB_TOKEN": "test-token",
        "GITHUB_WEBHOOK_SECRET": TEST_SECRET,
        "GROQ_API_KEY": "",
        "REVIEWED_LABEL": "",
    }
    values.update(overrides)
    return Settings(**values)


def make_file(
    filename: str = "app.js",
    status: FileStatus = FileStatus.MODIFIED,
    additions: int = 3,
    deletions: int = 0,
    patch: str = SAMPLE_PATCH,
    **kwargs
) -> ChangedFile:
    return ChangedFile(
        filename=filename,
        status=status,
        additions=additions,
        deletions=deletions,
        changes=kwargs.pop("changes", additions + deletions),
        patch=patch,
        **kwargs
    )
