"""Tests for the /api/chat proxy endpoint."""

from stillwaters.api.chat import get_provider
from stillwaters.core.exceptions import ResponseParseError
from stillwaters.schemas.chat import ChatAnswer
from tests.conftest import FailingProvider


def _assert_answer_shape(data: dict):
    assert isinstance(data["interpretations"], list)
    assert len(data["interpretations"]) >= 1
    for interpretation in data["interpretations"]:
        assert isinstance(interpretation["view"], str)
        for scripture in interpretation["scriptures"]:
            assert set(scripture) >= {"reference", "text", "translation"}


def test_mock_answer_matches_contract(client):
    response = client.post("/api/chat", json={"question": "What does Psalm 23 mean?"})
    assert response.status_code == 200
    data = response.json()
    _assert_answer_shape(data)
    assert data["question"] == "What does Psalm 23 mean?"
    assert data["interpretations"][0]["scriptures"][0]["reference"] == "Psalm 23:2"
    # The body must be readable by the same model the client uses for live answers
    ChatAnswer.model_validate(data)


def test_provider_answer_is_returned(client, stub_provider):
    response = client.post("/api/chat", json={"question": "What does Psalm 23 mean?"})
    assert response.status_code == 200
    data = response.json()
    _assert_answer_shape(data)
    assert data["interpretations"][0]["view"] == "This reflects God's provision..."
    assert stub_provider.calls == ["What does Psalm 23 mean?"]


def test_missing_question_is_rejected(client):
    response = client.post("/api/chat", json={})
    assert response.status_code == 422
    assert response.json() == {"error": "Invalid request: question"}


def test_blank_question_is_rejected(client, stub_provider):
    response = client.post("/api/chat", json={"question": "   \n\t "})
    assert response.status_code == 422
    assert "error" in response.json()
    assert stub_provider.calls == []


def test_question_is_stripped_before_reaching_provider(client, stub_provider):
    response = client.post("/api/chat", json={"question": "  Why do we pray?  "})
    assert response.status_code == 200
    assert stub_provider.calls == ["Why do we pray?"]


def test_upstream_failure_returns_generic_error(client):
    from stillwaters.main import app

    app.dependency_overrides[get_provider] = lambda: FailingProvider()
    response = client.post("/api/chat", json={"question": "hello"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch wisdom from the waters."}


def test_unexpected_provider_error_returns_generic_error(lenient_client):
    from stillwaters.main import app

    app.dependency_overrides[get_provider] = lambda: FailingProvider(ValueError("sdk blew up"))
    response = lenient_client.post("/api/chat", json={"question": "hello"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch wisdom from the waters."}


def test_parse_failure_returns_same_generic_error(client):
    from stillwaters.main import app

    failing = FailingProvider(ResponseParseError("not json", raw_output="Sure! Here you go"))
    app.dependency_overrides[get_provider] = lambda: failing
    response = client.post("/api/chat", json={"question": "hello"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch wisdom from the waters."}


def test_eleventh_request_in_window_is_rejected(client, stub_provider):
    for i in range(10):
        response = client.post("/api/chat", json={"question": f"question {i}"})
        assert response.status_code == 200

    response = client.post("/api/chat", json={"question": "one too many"})
    assert response.status_code == 429
    assert "Too many requests" in response.json()["error"]
    assert len(stub_provider.calls) == 10
    assert "one too many" not in stub_provider.calls


def test_rejected_requests_stay_rejected(client, stub_provider):
    for i in range(12):
        client.post("/api/chat", json={"question": f"question {i}"})

    assert client.post("/api/chat", json={"question": "again"}).status_code == 429
    assert len(stub_provider.calls) == 10
