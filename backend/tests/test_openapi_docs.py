# ruff: noqa: INP001
"""OpenAPI tag coverage, normalized operation docs, and health endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import app


def _operation(schema: dict[str, object], *, path: str, method: str) -> dict[str, object]:
    return schema["paths"][path][method]  # type: ignore[index,return-value]


def test_lab_routes_carry_resource_tags() -> None:
    schema = app.openapi()

    assert _operation(schema, path="/api/v1/tasks/start-next", method="patch")["tags"] == [
        "tasks",
    ]
    assert _operation(schema, path="/api/v1/task-types", method="post")["tags"] == ["task-types"]
    assert _operation(schema, path="/api/v1/machines/{machine_id}", method="get")["tags"] == [
        "machines",
    ]
    assert _operation(schema, path="/api/v1/users/with-tasks", method="get")["tags"] == ["users"]
    assert {tag["name"] for tag in schema["tags"]} >= {  # type: ignore[union-attr]
        "health",
        "tasks",
        "task-types",
        "machines",
        "users",
    }


def test_undocumented_operations_get_fallback_descriptions() -> None:
    schema = app.openapi()
    get_task = _operation(schema, path="/api/v1/tasks/{task_id}", method="get")
    responses = get_task["responses"]

    assert str(get_task["description"]).endswith(".")
    assert responses["200"]["description"] == "Request completed successfully."  # type: ignore[index]
    assert responses["422"]["description"] == (  # type: ignore[index]
        "Request payload failed schema or field validation."
    )


def test_health_endpoints_do_not_require_auth() -> None:
    client = TestClient(app)

    for path in ("/health", "/healthz", "/readyz"):
        resp = client.get(path)
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}

    assert client.get("/api/v1/tasks").status_code == 401
