import asyncio
from datetime import date

import requests

from coach.models import CheckIn, Profile, Targets
from coach.services.advisor import Advisor, daily_prompt, parse_advice, weekly_prompt
from coach.services.scoring import Adherence, Recovery
from coach.services.summary import WeeklySummary

PROFILE = Profile("Sam", 35, "male", 178, 200, 180, 20, "light", 4, 60, "full", "intermediate")
TARGETS = Targets(calories=2000, protein=153, carbs=208, fat=56, weekly_loss_target=1.0, daily_deficit=500, tdee=2500)


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def test_parse_advice():
    assert parse_advice('```json\n{"summary": "ok"}\n```') == {"summary": "ok"}
    assert parse_advice('{"a": 1}') == {"a": 1}
    assert parse_advice("not json") is None
    assert parse_advice("[1, 2]") is None
    assert parse_advice("") is None


def test_disabled_without_key():
    advisor = Advisor(None)
    assert not advisor.enabled
    assert advisor.ask("hello") is None
    assert asyncio.run(advisor.ask_async("hello")) is None
    assert advisor.with_key("k-123").enabled
    assert Advisor("k-1").with_key(None).api_key == "k-1"


def test_ask_parses_content(monkeypatch):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append((headers, json))
        return FakeResponse(200, {"content": [{"type": "text", "text": '```json\n{"summary": "Solid day"}\n```'}]})

    monkeypatch.setattr(requests, "post", fake_post)
    assert Advisor("k-1", model="m").ask("prompt") == {"summary": "Solid day"}
    headers, body = calls[0]
    assert headers["x-api-key"] == "k-1"
    assert body["model"] == "m"
    assert body["messages"][0]["content"] == "prompt"


def test_ask_async(monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(200, {"content": [{"text": '{"x": 1}'}]}))
    assert asyncio.run(Advisor("k-1").ask_async("prompt")) == {"x": 1}


def test_failures_become_none(monkeypatch):
    def boom(*a, **kw):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(requests, "post", boom)
    assert Advisor("k-1").ask("prompt") is None

    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(500, {"error": "overloaded"}))
    assert Advisor("k-1").ask("prompt") is None

    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(200))
    assert Advisor("k-1").ask("prompt") is None

    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(200, {"content": [{"text": "sure!"}]}))
    assert Advisor("k-1").ask("prompt") is None


def test_malformed_bodies_become_none(monkeypatch):
    for body in (["not", "an", "object"], {"content": "text"}, {"content": [{"text": None}]}, {}):
        monkeypatch.setattr(requests, "post", lambda *a, body=body, **kw: FakeResponse(200, body))
        assert Advisor("k-1").ask("prompt") is None


def test_null_text_block_is_skipped(monkeypatch):
    payload = {"content": [{"type": "tool_use", "text": None}, {"type": "text", "text": '{"summary": "ok"}'}]}
    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse(200, payload))
    assert Advisor("k-1").ask("prompt") == {"summary": "ok"}


def test_daily_prompt():
    checkin = CheckIn(date(2024, 3, 1), calories=1950, protein=150, workout_completed=True, steps=9000,
                      sleep_hours=7.5, stress=4, energy=7, notes="felt good")
    text = daily_prompt(PROFILE, TARGETS, checkin, Adherence(95, {}), 88, Recovery(90, "OPTIMAL"), 192.4, None)
    assert "1950 kcal" in text
    assert "felt good" in text
    assert "insufficient data" in text
    assert "OPTIMAL (90/100)" in text


def test_weekly_prompt():
    summary = WeeklySummary(avg_calories=1980, avg_protein=150, workouts_done=3, avg_adherence=86,
                            weekly_loss=0.4, checkin_count=6, days_in_deficit=40, plateau=True,
                            diet_break_eligible=False)
    text = weekly_prompt(PROFILE, TARGETS, summary, 190.0, "Upper/Lower")
    assert "avg 1980 kcal (target 2000)" in text
    assert "0.4 lbs/wk" in text
    assert "Plateau: YES" in text
    assert "No (40 days)" in text
    assert "Upper/Lower" in text
