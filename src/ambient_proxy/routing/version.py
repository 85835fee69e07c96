"""Client version parsing from the User-Agent header."""

from __future__ import annotations

AMBIENT_USER_AGENT_PREFIX = "ambient_network/"


def extract_version(user_agent: str | None) -> str:
    """Return the version reported by an Ambient client.

    ``ambient_network/1.2.3`` yields ``1.2.3``. Any other User-Agent,
    including a missing one, yields an empty string.
    """
    if not user_agent or not user_agent.startswith(AMBIENT_USER_AGENT_PREFIX):
        return ""
    return user_agent[len(AMBIENT_USER_AGENT_PREFIX):].strip()
