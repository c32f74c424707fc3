"""
Keyword tables for workflow-text checks.

Workflow files are treated as opaque text. Each check owns one tuple of
tokens; a token matches when it appears anywhere in the lower-cased text.
"""
import re
from typing import Iterable, List


def find_keywords(text: str, keywords: Iterable[str]) -> List[str]:
    """Return the keywords found in text, case-insensitive, in list order."""
    haystack = text.lower()
    return [k for k in keywords if k.lower() in haystack]


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    return bool(find_keywords(text, keywords))


def distinct_matches(found: List[str]) -> List[str]:
    """Drop matches that are substrings of a longer match ("prod" inside "production")."""
    return [k for k in found if not any(k != other and k in other for other in found)]


TEST_KEYWORDS = (
    "test",
    "pytest",
    "jest",
    "cargo test",
    "go test",
    "npm test",
    "yarn test",
    "phpunit",
    "rspec",
    "unittest",
)

LINT_KEYWORDS = (
    "lint",
    "eslint",
    "clippy",
    "flake8",
    "pylint",
    "ruff",
    "rubocop",
    "prettier",
    "rustfmt",
    "black",
    "golangci-lint",
    "fmt --check",
)

DOCKER_BUILD_KEYWORDS = (
    "docker build",
    "docker/build-push-action",
    "docker-build",
    "docker compose",
    "docker/setup-buildx",
)

# Matched case-sensitively on the raw text: key prefixes are case significant
SECRET_PATTERNS = (
    "AKIA",        # AWS access key id
    "sk-",         # OpenAI / Stripe secret key
    "ghp_",        # GitHub personal access token
    "password: ",  # inline password
    "passwd",
    "secret_key",
)

SECURITY_SCAN_KEYWORDS = (
    "trivy",
    "snyk",
    "bandit",
    "safety",
    "codeql",
    "semgrep",
    "sonarcloud",
    "sonarqube",
    "dependabot",
    "grype",
    "anchore",
    "checkov",
    "tfsec",
    "gitleaks",
)

COVERAGE_KEYWORDS = (
    "coverage",
    "codecov",
    "coveralls",
    "lcov",
    "tarpaulin",
    "jacoco",
    "istanbul",
    "nyc",
    "cobertura",
)

QUALITY_GATE_KEYWORDS = (
    "sonarcloud",
    "sonarqube",
    "sonar-scanner",
    "sonarqube-scan-action",
    "codeclimate",
    "codacy",
    "codecov",
    "deepsource",
)

ACTIONS_CACHE_KEYWORDS = ("actions/cache",)

SETUP_CACHE_KEYWORDS = (
    "cache: npm",
    "cache: yarn",
    "cache: pnpm",
    "cache: pip",
    "cache: poetry",
    "cache: 'npm'",
    "cache: 'pip'",
    "cache: gradle",
    "cache: maven",
)

DOCKER_CACHE_KEYWORDS = (
    "cache-from",
    "cache-to",
    "buildkit",
)

NOTIFICATION_KEYWORDS = (
    "discord-webhook",
    "discord_webhook",
    "slack-webhook",
    "slack_webhook",
    "slackapi/",
    "8398a7/action-slack",
    "rtcamp/action-slack",
    "rjstone/discord-webhook",
    "appleboy/telegram-action",
    "act10ns/slack",
    "notify",
    "send-message",
)

# At least two distinct indicators are required
ENVIRONMENT_KEYWORDS = (
    "environment:",
    "staging",
    "production",
    "prod",
    "dev",
    "deploy-staging",
    "deploy-prod",
)
MIN_ENVIRONMENT_INDICATORS = 2

DEPLOY_KEYWORDS = (
    "deploy",
    "publish",
    "release",
    "gh-pages",
    "pages",
    "aws",
    "azure",
    "gcloud",
    "heroku",
    "vercel",
    "netlify",
    "render",
    "fly.io",
)

# "on: push", "on: [push, pull_request]" or a push: key inside the on: block
PUSH_TRIGGER_RE = re.compile(
    r"^on:[ \t]*\[?[^\n]*\bpush\b"
    r"|^on:[ \t]*\n(?:[ \t]+[^\n]*\n)*?[ \t]+push:",
    re.MULTILINE,
)

GHCR_KEYWORDS = (
    "ghcr.io",
    "github container registry",
    "registry: ghcr",
)

IMAGE_PUSH_KEYWORDS = (
    "push: true",
    "docker push",
    "build-push-action",
)

SMOKE_TEST_KEYWORDS = (
    "smoke",
    "e2e",
    "end-to-end",
    "end_to_end",
    "integration-test",
    "post-deploy",
    "post_deploy",
    "acceptance",
    "health-check",
    "healthcheck",
    "playwright",
    "cypress",
    "puppeteer",
)

RELEASE_TOOL_KEYWORDS = (
    "release-please",
    "semantic-release",
    "create-release",
    "actions/create-release",
    "gh release create",
)

CHANGELOG_TOOL_KEYWORDS = (
    "release-please",
    "semantic-release",
    "conventional-changelog",
    "auto-changelog",
    "standard-version",
    "changesets",
)

ROLLBACK_KEYWORDS = (
    "rollback",
    "undo-deploy",
    "undo_deploy",
)

REUSABLE_DEFINE_KEYWORDS = ("workflow_call:",)

REUSABLE_CALL_KEYWORDS = (
    "uses: ./.github/workflows/",
    "uses: './.github/workflows/",
    'uses: "./.github/workflows/',
)


def has_push_trigger(text: str) -> bool:
    return PUSH_TRIGGER_RE.search(text.lower()) is not None
