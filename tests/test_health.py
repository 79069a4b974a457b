from fastapi.testclient import TestClient

from backoffice.main import app
from backoffice.core.config import PROJECT_NAME


def test_health_endpoint():
    """Test health endpoint"""
    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["app_name"] == PROJECT_NAME
