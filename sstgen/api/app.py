"""Main FastAPI application for the sstgen REST API."""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel

from .. import __version__
from ..analyzer import analyze_repository, get_classifier
from ..analyzer.classifier import Classifier
from ..deploy import stream_deployment
from ..errors import (
    AuthenticationError,
    ClassificationError,
    NotFoundError,
    SSTGenError,
    StorageError,
    UpstreamError,
    ValidationError,
)
from ..generator import build_config_archive, build_deploy_package
from ..github import GitHubClient, validate_clone_url
from ..models import DeploymentConfig, Repository
from ..store import ConfigStore, FileConfigStore

logger = logging.getLogger(__name__)


# Pydantic models
class GenerateDeployScriptRequest(BaseModel):
    repository: Optional[Dict[str, Any]] = None
    config: Dict[str, Any]


class SaveConfigRequest(BaseModel):
    name: str
    repository: str
    config: Dict[str, Any]


class DeployDirectRequest(BaseModel):
    repository: Dict[str, Any]
    config: Optional[Dict[str, Any]] = None


@dataclass
class Session:
    """An authenticated GitHub account."""
    access_token: str
    account: str
    email: Optional[str] = None


STATUS_CODES = {
    AuthenticationError: 401,
    ValidationError: 400,
    NotFoundError: 404,
    UpstreamError: 502,
    ClassificationError: 502,
    StorageError: 500,
}


# Create FastAPI app
app = FastAPI(
    title="sstgen API",
    description="Generate SST deployment configurations for GitHub repositories",
    version=__version__,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("SSTGEN_UI_ORIGIN", "*").split(","),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependencies
def get_session(authorization: Optional[str] = Header(None)) -> Session:
    """Resolve ``Authorization: Bearer <GitHub token>`` to the token's account."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthenticationError("Unauthorized")
    token = authorization.split(" ", 1)[1].strip()
    user = GitHubClient(token).get_authenticated_user()
    if not user.get("login"):
        raise AuthenticationError("Unauthorized")
    return Session(access_token=token, account=user["login"], email=user.get("email"))


def get_github_client(session: Session = Depends(get_session)) -> GitHubClient:
    return GitHubClient(session.access_token)


_store: Optional[ConfigStore] = None


def get_store() -> ConfigStore:
    global _store
    if _store is None:
        _store = FileConfigStore()
    return _store


def get_analysis_classifier() -> Classifier:
    return get_classifier()


def get_deploy_streamer() -> Callable:
    return stream_deployment


def _parse_config(data: Dict[str, Any]) -> DeploymentConfig:
    return DeploymentConfig.from_dict(data)


def _zip_response(filename: str, content: bytes) -> Response:
    return Response(
        content=content,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "sstgen API is running", "version": __version__}


@app.get("/api/repositories")
def list_repositories(client: GitHubClient = Depends(get_github_client)) -> List[Dict[str, Any]]:
    """Repositories of the signed-in account."""
    return [repo.to_dict() for repo in client.list_repositories()]


@app.get("/api/analyze/{owner}/{repo}")
def analyze(
    owner: str,
    repo: str,
    client: GitHubClient = Depends(get_github_client),
    classifier: Classifier = Depends(get_analysis_classifier),
) -> Dict[str, Any]:
    """Classify a repository."""
    analysis = analyze_repository(client, owner, repo, classifier)
    logger.info(f"Analyzed {owner}/{repo}: {analysis.type}/{analysis.framework}")
    return analysis.to_dict()


@app.post("/api/generate-config")
def generate_config(config: Dict[str, Any], session: Session = Depends(get_session)):
    """Zip with sst.config.ts, package.json and deployment instructions."""
    deployment_config = _parse_config(config)
    filename, content = build_config_archive(deployment_config)
    return _zip_response(filename, content)


@app.post("/api/generate-deploy-script")
def generate_deploy_script(request: GenerateDeployScriptRequest, session: Session = Depends(get_session)):
    """Zip with the configuration plus a local deploy script."""
    if not request.repository:
        raise ValidationError("Repository information required")
    repository = Repository.from_dict(request.repository)
    validate_clone_url(repository.git_url)
    deployment_config = _parse_config(request.config)
    filename, content = build_deploy_package(repository, deployment_config)
    return _zip_response(filename, content)


@app.get("/api/configs")
def list_configs(session: Session = Depends(get_session), store: ConfigStore = Depends(get_store)):
    """Saved configurations for the signed-in account."""
    return [saved.to_dict() for saved in store.list(session.account)]


@app.post("/api/configs")
def save_config(
    request: SaveConfigRequest,
    session: Session = Depends(get_session),
    store: ConfigStore = Depends(get_store),
):
    """Save a named configuration."""
    deployment_config = _parse_config(request.config)
    saved = store.save(session.account, request.name, request.repository, deployment_config)
    return saved.to_dict()


@app.get("/api/configs/{config_id}")
def get_config(config_id: str, session: Session = Depends(get_session), store: ConfigStore = Depends(get_store)):
    """One saved configuration of the signed-in account."""
    saved = store.get(session.account, config_id)
    if saved is None:
        raise NotFoundError(f"Configuration {config_id} not found")
    return saved.to_dict()


@app.post("/api/deploy-direct")
def deploy_direct(
    request: DeployDirectRequest,
    session: Session = Depends(get_session),
    streamer: Callable = Depends(get_deploy_streamer),
):
    """Deploy a repository and stream progress as Server-Sent Events."""
    repository = Repository.from_dict(request.repository)
    repo_url = validate_clone_url(repository.git_url)
    deployment_config = _parse_config(request.config) if request.config else None
    logger.info(f"{session.account} started a direct deployment of {repository.full_name}")

    return StreamingResponse(
        streamer(repo_url, deployment_config),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@app.exception_handler(SSTGenError)
async def sstgen_exception_handler(request: Request, exc: SSTGenError):
    """Map sstgen errors to HTTP status codes."""
    status_code = 500
    for error_type, code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Custom HTTP exception handler."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail), "hint": None}},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """General exception handler."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_error",
                "message": "An unexpected error occurred",
                "hint": "Please try again later",
            }
        },
    )


def run(host: str = "0.0.0.0", port: Optional[int] = None) -> None:
    uvicorn.run(app, host=host, port=port or int(os.getenv("PORT", 8080)))


if __name__ == "__main__":
    run()
