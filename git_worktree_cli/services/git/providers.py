"""Pull request / merge request lookup through gh, glab or the hosting REST APIs."""

import json
import os
import re
import subprocess
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from github import Auth, Github, GithubException
from rich.console import Console

from git_worktree_cli.constants import ENV_GITHUB_TOKEN, ENV_GITLAB_TOKEN, PROVIDERS
from git_worktree_cli.exceptions import ProviderError
from git_worktree_cli.models.pull_request import PullRequest
from git_worktree_cli.logging_config import get_logger

console = Console()
logger = get_logger(__name__)

GITLAB_API_URL = "https://gitlab.com/api/v4"


def get_remote_hostname(remote_url: str) -> Optional[str]:
    """Hostname of an SSH (git@host:org/repo) or URL-style remote."""
    remote_url = remote_url.strip()
    scp_match = re.match(r"^[\w.-]+@([^:/]+):", remote_url)
    if scp_match:
        return scp_match.group(1).lower()
    parsed = urlparse(remote_url)
    return parsed.hostname.lower() if parsed.hostname else None


def detect_git_provider(remote_url: Optional[str]) -> Optional[str]:
    """'gh' for GitHub remotes, 'glab' for GitLab remotes, None otherwise."""
    if not remote_url:
        return None
    hostname = get_remote_hostname(remote_url)
    if not hostname:
        return None
    if hostname == "github.com":
        return "gh"
    if hostname == "gitlab.com" or hostname.startswith("gitlab."):
        return "glab"
    return None


def parse_repo_slug(remote_url: str) -> Tuple[str, str]:
    """(owner, repo) from a remote URL."""
    match = re.search(r"[:/]([^/:]+)/([^/]+?)(?:\.git)?/?$", remote_url.strip())
    if not match:
        raise ProviderError(f"Could not parse repository info from remote URL: {remote_url}")
    return match.group(1), match.group(2)


class ProviderService:
    """Resolves PR/MR numbers to branch names and lists open requests."""

    def __init__(self, provider: str, remote_url: Optional[str] = None):
        if provider not in PROVIDERS:
            raise ProviderError(f"Unknown git provider '{provider}'")
        self.provider = provider
        self.remote_url = remote_url

    @property
    def is_github(self) -> bool:
        return self.provider == "gh"

    @property
    def request_type(self) -> str:
        return "Pull Request" if self.is_github else "Merge Request"

    @property
    def short_type(self) -> str:
        return "PR" if self.is_github else "MR"

    def _run_cli(self, args: List[str]) -> str:
        """Run gh/glab. FileNotFoundError propagates so callers can fall back to REST."""
        logger.debug(f"Running {' '.join(args)}")
        result = subprocess.run(args, capture_output=True, text=True)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            if "could not find" in stderr.lower() or "not found" in stderr.lower():
                raise ProviderError(f"{self.request_type} not found: {stderr}")
            raise ProviderError(f"'{' '.join(args[:3])}' failed: {stderr or result.returncode}")
        return result.stdout

    def _slug(self) -> Tuple[str, str]:
        if not self.remote_url:
            raise ProviderError("No 'origin' remote configured; cannot query the hosting API")
        return parse_repo_slug(self.remote_url)

    # --- branch lookup ---

    def get_branch_name(self, number: int) -> str:
        """Head/source branch of a PR/MR, via the CLI or the REST API when the CLI is missing."""
        try:
            if self.is_github:
                output = self._run_cli(
                    ["gh", "pr", "view", str(number), "--json", "headRefName", "-q", ".headRefName"]
                )
                branch = output.strip()
            else:
                output = self._run_cli(["glab", "mr", "view", str(number), "-o", "json"])
                branch = self._load_json(output).get("source_branch", "")
        except FileNotFoundError:
            api_name = "GitHub" if self.is_github else "GitLab"
            console.print(
                f"[yellow]{self.provider} CLI not found. Attempting to use {api_name} REST API...[/yellow]"
            )
            branch = self._github_branch(number) if self.is_github else self._gitlab_branch(number)

        if not branch:
            raise ProviderError(f"Could not extract branch name from {self.short_type} #{number}")
        return branch

    def _load_json(self, output: str) -> Any:
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise ProviderError(f"Failed to parse {self.provider} output: {e}") from e

    def _github_client(self) -> Github:
        token = os.environ.get(ENV_GITHUB_TOKEN)
        if not token:
            raise ProviderError(
                f"{ENV_GITHUB_TOKEN} environment variable is required when 'gh' CLI is not installed. "
                "Install gh (https://cli.github.com) or export a token."
            )
        return Github(auth=Auth.Token(token))

    def _github_branch(self, number: int) -> str:
        owner, repo = self._slug()
        try:
            gh_repo = self._github_client().get_repo(f"{owner}/{repo}")
            return gh_repo.get_pull(number).head.ref
        except GithubException as e:
            if e.status == 404:
                raise ProviderError(f"Pull Request #{number} not found.") from e
            if e.status == 401:
                raise ProviderError(f"GitHub authentication failed. Check your {ENV_GITHUB_TOKEN}.") from e
            raise ProviderError(f"GitHub API request failed: {e}") from e

    def _gitlab_request(self, path: str) -> Any:
        token = os.environ.get(ENV_GITLAB_TOKEN)
        if not token:
            raise ProviderError(
                f"{ENV_GITLAB_TOKEN} environment variable is required when 'glab' CLI is not installed. "
                "Install glab or export a token."
            )
        owner, repo = self._slug()
        project = urllib.parse.quote(f"{owner}/{repo}", safe="")
        request = urllib.request.Request(
            f"{GITLAB_API_URL}/projects/{project}/{path}",
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
        )
        try:
            with urllib.request.urlopen(request) as response:
                return json.loads(response.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise ProviderError("Merge Request not found.") from e
            if e.code == 401:
                raise ProviderError(f"GitLab authentication failed. Check your {ENV_GITLAB_TOKEN}.") from e
            raise ProviderError(f"GitLab API request failed: {e.code} {e.reason}") from e
        except urllib.error.URLError as e:
            raise ProviderError(f"GitLab API request failed: {e.reason}") from e

    def _gitlab_branch(self, number: int) -> str:
        data = self._gitlab_request(f"merge_requests/{number}")
        return data.get("source_branch", "") if isinstance(data, dict) else ""

    # --- listing ---

    def list_open(self) -> List[PullRequest]:
        """Open PRs/MRs for the picker."""
        try:
            if self.is_github:
                output = self._run_cli(["gh", "pr", "list", "--json", "number,title,headRefName"])
                return [
                    PullRequest(item["number"], item.get("title", ""), item["headRefName"])
                    for item in self._load_json(output)
                ]
            output = self._run_cli(["glab", "mr", "list", "-F", "json"])
            return self._from_gitlab(self._load_json(output))
        except FileNotFoundError:
            logger.debug(f"{self.provider} CLI not found, listing through the REST API")

        if self.is_github:
            owner, repo = self._slug()
            try:
                pulls = self._github_client().get_repo(f"{owner}/{repo}").get_pulls(state="open")
                return [PullRequest(pr.number, pr.title, pr.head.ref) for pr in pulls]
            except GithubException as e:
                raise ProviderError(f"GitHub API request failed: {e}") from e
        return self._from_gitlab(self._gitlab_request("merge_requests?state=opened"))

    @staticmethod
    def _from_gitlab(items: List[Dict[str, Any]]) -> List[PullRequest]:
        return [
            PullRequest(item["iid"], item.get("title", ""), item["source_branch"])
            for item in items
        ]

    def fetch_refspec(self, number: int, local_branch: str) -> str:
        """Refspec fetching the PR/MR head into a local branch."""
        if self.is_github:
            return f"refs/pull/{number}/head:{local_branch}"
        return f"{self.get_branch_name(number)}:{local_branch}"
