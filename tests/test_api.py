"""
Tests for the REST API.
"""

import io
import zipfile

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock, patch

from sstgen.analyzer.classifier import RulesClassifier
from sstgen.api.app import (
    Session,
    app,
    get_analysis_classifier,
    get_deploy_streamer,
    get_github_client,
    get_session,
    get_store,
)
from sstgen.deploy import Sentinel, decode_sse, encode_sentinel
from sstgen.errors import UpstreamError
from sstgen.models import DeploymentConfig, Repository
from sstgen.store import InMemoryConfigStore

CONFIG = {
    "projectName": "site",
    "framework": "Next.js",
    "projectType": "SSR",
    "region": "us-east-1",
    "customDomain": {"enabled": False},
    "userDistribution": "worldwide",
    "buildCommand": "npm run build",
    "outputDir": ".next",
}

REPOSITORY = {
    "id": 42,
    "name": "site",
    "full_name": "octo/site",
    "private": False,
    "html_url": "https://github.com/octo/site",
    "clone_url": "https://github.com/octo/site.git",
}


@pytest.fixture
def github():
    client = Mock()
    client.list_repositories.return_value = [Repository.from_dict(REPOSITORY)]
    client.get_file_content.return_value = '{"dependencies": {"next": "14"}}'
    client.list_directory.return_value = ["package.json"]
    return client


@pytest.fixture
def store():
    return InMemoryConfigStore()


@pytest.fixture
def client(github, store):
    app.dependency_overrides[get_session] = lambda: Session(access_token="t", account="octocat")
    app.dependency_overrides[get_github_client] = lambda: github
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_analysis_classifier] = lambda: RulesClassifier()
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health():
    response = TestClient(app).get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "sstgen API is running"


class TestAuthentication:
    """Requests without a valid session."""

    def test_missing_header(self):
        response = TestClient(app).get("/api/repositories")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    def test_not_bearer(self):
        response = TestClient(app).get("/api/configs", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    @patch("sstgen.api.app.GitHubClient")
    def test_bearer_resolved_to_account(self, mock_client_class, store):
        mock_client_class.return_value.get_authenticated_user.return_value = {"login": "octocat", "email": None}
        app.dependency_overrides[get_store] = lambda: store
        try:
            store.save("octocat", "prod", "octo/site", _config())
            response = TestClient(app).get("/api/configs", headers={"Authorization": "Bearer ghp_abc"})
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["prod"]
        mock_client_class.assert_called_with("ghp_abc")


def _config():
    return DeploymentConfig.from_dict(CONFIG)


class TestEndpoints:
    """Authenticated endpoints."""

    def test_repositories(self, client):
        response = client.get("/api/repositories")
        assert response.status_code == 200
        assert response.json()[0]["full_name"] == "octo/site"

    def test_repositories_upstream_failure(self, client, github):
        github.list_repositories.side_effect = UpstreamError("Failed to fetch repositories")
        response = client.get("/api/repositories")
        assert response.status_code == 502
        assert response.json()["error"]["code"] == "upstream_failed"

    def test_analyze(self, client):
        response = client.get("/api/analyze/octo/site")
        assert response.status_code == 200
        assert response.json()["type"] == "SSR"
        assert response.json()["framework"] == "Next.js"

    def test_generate_config(self, client):
        response = client.post("/api/generate-config", json=CONFIG)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert 'filename="site-sst-config.zip"' in response.headers["content-disposition"]
        with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
            assert "sst.config.ts" in zf.namelist()

    def test_generate_config_invalid(self, client):
        response = client.post("/api/generate-config", json={**CONFIG, "projectType": "EDGE"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_request"

    def test_generate_deploy_script(self, client):
        response = client.post("/api/generate-deploy-script", json={"repository": REPOSITORY, "config": CONFIG})
        assert response.status_code == 200
        with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
            assert "quick-deploy.sh" in zf.namelist()

    def test_generate_deploy_script_without_repository(self, client):
        response = client.post("/api/generate-deploy-script", json={"config": CONFIG})
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Repository information required"

    def test_save_and_list_configs(self, client):
        saved = client.post("/api/configs", json={"name": "prod", "repository": "octo/site", "config": CONFIG})
        assert saved.status_code == 200
        assert saved.json()["id"].startswith("c-")

        listed = client.get("/api/configs").json()
        assert len(listed) == 1
        assert listed[0]["config"]["projectName"] == "site"

    def test_deploy_direct_streams_events(self, client):
        calls = []

        def fake_streamer(repo_url, config):
            calls.append((repo_url, config))
            yield 'data: {"progress": 0, "step": "Starting deployment", "message": "go"}\n\n'
            yield encode_sentinel(Sentinel.COMPLETE)

        app.dependency_overrides[get_deploy_streamer] = lambda: fake_streamer
        response = client.post("/api/deploy-direct", json={"repository": REPOSITORY})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = decode_sse(response.text)
        assert events[-1] == {"type": "complete"}
        assert calls == [("https://github.com/octo/site.git", None)]

    def test_get_config(self, client):
        saved = client.post("/api/configs", json={"name": "prod", "repository": "octo/site", "config": CONFIG}).json()
        response = client.get(f"/api/configs/{saved['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "prod"

    @pytest.mark.parametrize("config_id", ["c-20240101-000000-abcd", "not-an-id", "d-20240101-000000-abcd"])
    def test_get_config_missing(self, client, config_id):
        response = client.get(f"/api/configs/{config_id}")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"


class TestRequestValidation:
    """Malformed values are answered with 400, never 500."""

    @pytest.mark.parametrize("config", [
        {**CONFIG, "customDomain": "yes"},
        {**CONFIG, "customDomain": {"enabled": True, "domain": "a.com\nprocess.exit(1);"}},
        {**CONFIG, "customDomain": {"enabled": True, "domain": "not a domain"}},
        {**CONFIG, "projectName": 123},
    ])
    def test_generate_config_bad_fields(self, client, config):
        response = client.post("/api/generate-config", json=config)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_request"

    def test_generate_deploy_script_bad_clone_url(self, client):
        repository = {**REPOSITORY, "clone_url": "--upload-pack=touch /tmp/pwned"}
        response = client.post("/api/generate-deploy-script", json={"repository": repository, "config": CONFIG})
        assert response.status_code == 400

    def test_deploy_direct_bad_clone_url(self, client):
        calls = []

        def fake_streamer(repo_url, config):
            calls.append(repo_url)
            yield encode_sentinel(Sentinel.COMPLETE)

        app.dependency_overrides[get_deploy_streamer] = lambda: fake_streamer
        repository = {**REPOSITORY, "clone_url": "--upload-pack=touch /tmp/pwned"}
        response = client.post("/api/deploy-direct", json={"repository": repository})

        assert response.status_code == 400
        assert "Unsupported repository URL" in response.json()["error"]["message"]
        assert calls == []

    def test_deploy_direct_repository_wrong_type(self, client):
        response = client.post("/api/deploy-direct", json={"repository": {**REPOSITORY, "name": ["site"]}})
        assert response.status_code == 400
