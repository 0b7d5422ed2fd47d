# pr_buddy/schemas/webhook.py

"""GitHub pull_request webhook payload schema

Only the fields the review pipeline relies on are declared; GitHub sends many
more and they are ignored.
"""

from pydantic import BaseModel, ConfigDict


class GitHubUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    login: str


class GitHubCommitRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sha: str


class GitHubRepository(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    owner: GitHubUser
    # Required; a missing flag must not count as public
    private: bool


class GitHubPullRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: int
    title: str
    user: GitHubUser
    html_url: str
    head: GitHubCommitRef
    base: GitHubCommitRef


class GitHubWebhookPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: str
    pull_request: GitHubPullRequest
    repository: GitHubRepository
