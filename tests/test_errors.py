import json

from completion_gateway.errors import error_response, not_found, service_unavailable


def test_http_error_carries_standard_body():
    exc = not_found("Conversation not found", details={"session_id": "s1"})

    assert exc.status_code == 404
    assert exc.detail == {
        "error": "not_found",
        "message": "Conversation not found",
        "code": 404,
        "details": {"session_id": "s1"},
    }


def test_error_response_renders_detail_envelope():
    response = error_response(service_unavailable("All models are currently rate limited"))

    assert response.status_code == 503
    assert json.loads(response.body) == {
        "detail": {
            "error": "service_unavailable",
            "message": "All models are currently rate limited",
            "code": 503,
            "details": None,
        }
    }
