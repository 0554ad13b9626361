"""Tests for actor normalisation and display."""

from __future__ import annotations

import pytest

from taskpilot.web.context import (
    Actor,
    ActorContext,
    AgentIdentity,
    actor_display,
    normalize_actor,
)


class TestNormalizeActor:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("human", Actor.HUMAN),
            ("AGENT", Actor.AGENT),
            ("moltbot", Actor.AGENT),
            ("bot", Actor.AGENT),
            ("user", Actor.HUMAN),
            ("system", Actor.SYSTEM),
            ("api", Actor.API),
            ("martian", Actor.HUMAN),
            (None, Actor.HUMAN),
            ("", Actor.HUMAN),
        ],
    )
    def test_values(self, value, expected):
        assert normalize_actor(value) is expected


class TestActorDisplay:
    def test_agent_uses_identity(self):
        agent = AgentIdentity(name="Pilot", color="#123456", avatar="P")
        assert actor_display("moltbot", agent) == {
            "name": "Pilot",
            "color": "#123456",
            "avatar": "P",
        }

    def test_system_and_human(self):
        agent = AgentIdentity()
        assert actor_display(Actor.SYSTEM, agent)["name"] == "System"
        assert actor_display("human", agent)["name"] == "User"
        assert actor_display("human", agent, "Ada")["name"] == "Ada"


class TestActorContext:
    def test_as_system(self):
        ctx = ActorContext(tenant_id="t1", actor=Actor.HUMAN, user_id="u1")
        system = ctx.as_system()
        assert system.tenant_id == "t1"
        assert system.actor is Actor.SYSTEM
        assert system.user_id is None
        assert system.dispatch_events is False
        assert ctx.dispatch_events is True
