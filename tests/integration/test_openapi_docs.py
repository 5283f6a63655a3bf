from __future__ import annotations

import yaml
from fastapi.testclient import TestClient


def test_openapi_yaml_lists_api_routes(client: TestClient) -> None:
    response = client.get("/openapi.yaml")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/yaml")

    document = yaml.safe_load(response.text)
    assert document["info"]["title"] == "Unique Staffing Professionals API"
    assert "/api/applicants" in document["paths"]
    assert "/api/documents/verify" in document["paths"]
    assert "/storage/{bucket}/{path}" not in document["paths"]


def test_swagger_ui_page(client: TestClient) -> None:
    response = client.get("/openapi/docs")
    assert response.status_code == 200
    assert "swagger-ui" in response.text
    assert "API Documentation" in response.text
    assert client.get("/docs").status_code == 404
