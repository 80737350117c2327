from __future__ import annotations


def test_docs_swagger_ui(client):
    response = client.get("/docs/")
    assert response.status_code == 200
    assert b"Swagger" in response.data


def test_openapi_spec_lists_endpoints(client):
    response = client.get("/docs/openapi.json")
    assert response.status_code == 200
    data = response.get_json()
    assert any(path.startswith("/health") for path in data["paths"].keys())
    assert "/currency/rates" in data["paths"]
    assert "/currency/rate/{code}" in data["paths"]
    assert "/currency/convert" in data["paths"]
    assert "/currency/conversions" in data["paths"]


def test_openapi_spec_documents_error_responses(client):
    paths = client.get("/docs/openapi.json").get_json()["paths"]

    rate_responses = paths["/currency/rate/{code}"]["get"]["responses"]
    assert {"200", "400", "404"} <= set(rate_responses)
    assert "500" in paths["/currency/rates"]["get"]["responses"]
    assert "500" in paths["/currency/convert"]["post"]["responses"]
    assert "404" in paths["/currency/conversions"]["get"]["responses"]
