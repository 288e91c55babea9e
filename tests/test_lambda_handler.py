import asyncio
import json
from types import SimpleNamespace

import pytest

import lambda_handler


@pytest.fixture
def context():
    return SimpleNamespace(
        function_name="identity-resolver",
        function_version="1",
        invoked_function_arn="arn:aws:lambda:us-east-1:123456789012:function:identity-resolver",
        memory_limit_in_mb="512",
        aws_request_id="test-request-id",
        get_remaining_time_in_millis=lambda: 30000,
    )


@pytest.fixture
def event_loop_for_mangum():
    """Mangum runs the ASGI app on the thread's current event loop"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    asyncio.set_event_loop(None)
    loop.close()


def api_gateway_v2_event(method, path, body=None):
    return {
        "version": "2.0",
        "routeKey": f"{method} {path}",
        "rawPath": path,
        "rawQueryString": "",
        "headers": {
            "accept": "application/json",
            "content-type": "application/json",
            "host": "api.example.com",
            "x-forwarded-proto": "https",
        },
        "requestContext": {
            "accountId": "123456789012",
            "apiId": "abcdef123",
            "domainName": "api.example.com",
            "domainPrefix": "api",
            "http": {
                "method": method,
                "path": path,
                "protocol": "HTTP/1.1",
                "sourceIp": "203.0.113.12",
                "userAgent": "test-client/1.0",
            },
            "requestId": "test-request-123",
            "routeKey": f"{method} {path}",
            "stage": "$default",
            "time": "01/Jan/2025:00:00:00 +0000",
            "timeEpoch": 1735689600000,
        },
        "body": body,
        "isBase64Encoded": False,
    }


def test_describe_event_formats():
    assert lambda_handler.describe_event(api_gateway_v2_event("POST", "/identify")) == \
        "API Gateway v2 event: POST /identify"
    assert lambda_handler.describe_event({"httpMethod": "GET", "path": "/health"}) == \
        "API Gateway v1 event: GET /health"
    assert lambda_handler.describe_event({"source": "aws.events"}) == \
        "Unknown event format with keys ['source']"


def test_lambda_handler_serves_app(context, event_loop_for_mangum):
    response = lambda_handler.lambda_handler(api_gateway_v2_event("GET", "/"), context)

    assert response["statusCode"] == 200
    assert json.loads(response["body"])["message"] == "Contact Identity Resolver is running"


def test_lambda_handler_reports_adapter_crash(context, monkeypatch):
    def crash(event, ctx):
        raise RuntimeError("adapter failure")

    monkeypatch.setattr(lambda_handler, "handler", crash)

    response = lambda_handler.lambda_handler(api_gateway_v2_event("GET", "/"), context)

    assert response["statusCode"] == 500
    assert json.loads(response["body"]) == {
        "error": "InternalServerError",
        "message": "An unexpected error occurred",
        "requestId": "test-request-id",
    }
