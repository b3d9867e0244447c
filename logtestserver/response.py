"""Canned payload served by the JSON endpoints and attached to synthetic log records."""

from typing import Any, Dict

DUMMY_RESPONSE: Dict[str, Any] = {
    "requestId": "a1b2c3d4",
    "generatedAt": "2025-11-17T12:34:56Z",
    "metrics": {
        "latencyMs": 123,
        "successRate": 0.987,
        "errors": [
            {"code": "TIMEOUT", "count": 3},
            {"code": "BAD_REQUEST", "count": 1},
        ],
    },
    "users": [
        {
            "id": 1,
            "name": "Alice",
            "active": True,
            "roles": ["admin", "tester"],
            "tags": {"region": "eu-west", "plan": "pro"},
        },
        {
            "id": 2,
            "name": "Bob",
            "active": False,
            "roles": ["viewer"],
            "tags": {"region": "us-east", "plan": "free"},
        },
    ],
}
