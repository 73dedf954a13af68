"""Remediation text for fatal errors, tailored to the detected hosting platform."""

from __future__ import annotations

from collections.abc import Sequence

from deckhand.core.probe import HostingPlatform

TOKEN_HELP_URL = "https://gitlab.com/-/profile/personal_access_tokens"
DOCKER_INSTALL_URL = "https://docs.docker.com/get-docker/"


def _set_var(platform: HostingPlatform | None, name: str, example: str) -> str:
    if platform is HostingPlatform.HEROKU:
        return f"heroku config:set {name}={example}"
    return f"export {name}={example}"


def missing_config_hint(names: Sequence[str], platform: HostingPlatform | None) -> str:
    examples = {"SESSION_ID": "your_session_id", "OWNER_NUMBER": "923001234567"}
    lines = [_set_var(platform, name, examples.get(name, "...")) for name in names]
    return "Set the required variables:\n  " + "\n  ".join(lines)


def missing_token_hint(platform: HostingPlatform | None) -> str:
    lines = []
    if platform is HostingPlatform.HEROKU:
        lines += [
            "To run the container image instead (recommended on Heroku):",
            "  heroku stack:set container -a your-app-name   (then redeploy)",
        ]
    else:
        lines += ["Or run the container image instead: USE_DOCKER=true (needs Docker)."]
    lines += [
        "Source mode needs a personal access token:",
        f"  1. Go to {TOKEN_HELP_URL}",
        '  2. Create a token with the "read_repository" scope',
        f"  3. {_set_var(platform, 'GITLAB_TOKEN', 'glpat-xxxxxxxxxxxx')}",
    ]
    return "\n".join(lines)


def no_engine_hint(platform: HostingPlatform | None) -> str:
    lines = [
        f"Install Docker: {DOCKER_INSTALL_URL}",
        "Or use source mode: USE_DOCKER=false with GITLAB_TOKEN set.",
    ]
    if platform is HostingPlatform.HEROKU:
        lines.append("Heroku standard dynos do not support Docker; unset USE_DOCKER and set GITLAB_TOKEN.")
    return "\n".join(lines)


def pull_failed_hint() -> str:
    return (
        "Possible causes: network connectivity problems, registry authentication "
        "required, or the image does not exist / was moved."
    )


def clone_failed_hint(platform: HostingPlatform | None) -> str:
    hint = (
        "Possible causes: invalid or expired GITLAB_TOKEN, token lacks read_repository "
        "permission, network connectivity issues, or the repository was moved."
    )
    if platform is HostingPlatform.HEROKU:
        hint += "\nVerify your Heroku config: heroku config:get GITLAB_TOKEN"
    return hint
