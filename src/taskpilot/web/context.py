"""Who is acting: actor kinds, the automated agent's identity, request context."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Actor(StrEnum):
    HUMAN = "human"
    AGENT = "agent"
    SYSTEM = "system"
    API = "api"


# Historical values still found in stored rows
_LEGACY_ACTORS: dict[str, Actor] = {
    "moltbot": Actor.AGENT,
    "bot": Actor.AGENT,
    "user": Actor.HUMAN,
}


def normalize_actor(value: str | None) -> Actor:
    """Map any stored or claimed actor string to the canonical Actor.

    Unknown values are treated as a human acting through the UI.
    """
    if not value:
        return Actor.HUMAN
    lowered = value.strip().lower()
    if lowered in _LEGACY_ACTORS:
        return _LEGACY_ACTORS[lowered]
    try:
        return Actor(lowered)
    except ValueError:
        return Actor.HUMAN


@dataclass
class AgentIdentity:
    """How the automated agent is presented in activity feeds."""

    name: str = "AI Assistant"
    short_name: str = "AI"
    avatar: str = "🤖"
    color: str = "#F97316"


def actor_display(actor: str | Actor, agent: AgentIdentity, user_name: str = "") -> dict:
    """Display name/color/avatar for an actor in the given agent identity."""
    canonical = normalize_actor(actor)
    if canonical is Actor.AGENT:
        return {"name": agent.name, "color": agent.color, "avatar": agent.avatar}
    if canonical is Actor.SYSTEM:
        return {"name": "System", "color": "#6B7280", "avatar": "⚙️"}
    if canonical is Actor.API:
        return {"name": "API", "color": "#8B5CF6", "avatar": "🔌"}
    return {"name": user_name or "User", "color": "#3B82F6", "avatar": ""}


@dataclass
class ActorContext:
    """Everything a mutation needs to know about who is performing it."""

    tenant_id: str
    actor: Actor = Actor.HUMAN
    user_id: str | None = None
    agent: AgentIdentity = field(default_factory=AgentIdentity)
    # Raised lifecycle events feed the rule engine; automation turns this off
    dispatch_events: bool = True

    def as_system(self) -> ActorContext:
        return ActorContext(
            tenant_id=self.tenant_id,
            actor=Actor.SYSTEM,
            user_id=None,
            agent=self.agent,
            dispatch_events=False,
        )
