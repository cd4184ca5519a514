"""Tests for POST /api/chat."""

from chat.actions import ActionResult, ChatResponse
from chat.interpreter import InterpretationError

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def test_message_runs_pipeline(client, auth_headers, orchestrator):
    orchestrator.process.return_value = ChatResponse(
        ai_message="Created!",
        results=[
            ActionResult.success("CreateHabit", "h1", "Drink water"),
            ActionResult.failed("LogHabit", "Habit bogus not found."),
        ],
    )

    res = client.post("/api/chat", headers=auth_headers, data={"message": "water please"})

    assert res.status_code == 200
    body = res.json()
    assert body["ai_message"] == "Created!"
    assert [r["status"] for r in body["results"]] == ["Success", "Failed"]
    assert body["results"][0]["entity_name"] == "Drink water"
    assert body["results"][1]["error"] == "Habit bogus not found."
    orchestrator.process.assert_awaited_once_with("user-123", "water please", None, None)


def test_image_upload(client, auth_headers, orchestrator):
    orchestrator.process.return_value = ChatResponse(ai_message="Nice salad")

    res = client.post(
        "/api/chat",
        headers=auth_headers,
        files={"image": ("lunch.png", PNG, "image/png")},
    )

    assert res.status_code == 200
    orchestrator.process.assert_awaited_once_with("user-123", "", PNG, "image/png")


def test_requires_message_or_image(client, auth_headers, orchestrator):
    res = client.post("/api/chat", headers=auth_headers, data={"message": "   "})
    assert res.status_code == 400
    orchestrator.process.assert_not_awaited()


def test_message_too_long(client, auth_headers, orchestrator):
    res = client.post("/api/chat", headers=auth_headers, data={"message": "x" * 101})
    assert res.status_code == 400
    assert "cannot exceed 100" in res.json()["detail"]
    orchestrator.process.assert_not_awaited()


def test_rejects_disguised_file(client, auth_headers, orchestrator):
    res = client.post(
        "/api/chat",
        headers=auth_headers,
        data={"message": "look"},
        files={"image": ("evil.png", b"#!/bin/sh\necho hi", "image/png")},
    )
    assert res.status_code == 400
    assert "magic bytes" in res.json()["detail"]
    orchestrator.process.assert_not_awaited()


def test_interpretation_error_is_400(client, auth_headers, orchestrator):
    orchestrator.process.side_effect = InterpretationError("AI service error: overloaded")
    res = client.post("/api/chat", headers=auth_headers, data={"message": "log my run"})
    assert res.status_code == 400
    assert res.json() == {"error": "AI service error: overloaded"}
