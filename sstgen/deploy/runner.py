"""
Direct deployment: clone, detect, install, configure, ``sst deploy``.

Each step runs external processes with an explicit working directory and
reports a ProgressFrame. Any failure aborts the run; the scratch clone is
removed best-effort and the error propagates.
"""

import logging
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..analyzer import analyze_checkout
from ..errors import DeploymentError, PrerequisiteError, SSTGenError
from ..generator import SSTGenerator, merge_package_json
from ..generator.sst import SST_CONFIG_FILE
from ..github import validate_clone_url
from ..ids import new_run_id
from ..models import DeploymentConfig, Distribution, ProjectAnalysis, normalize_project_name
from ..settings import get_deploy_region, get_deploy_stage, get_scratch_root
from .commands import CommandFailed, run_command
from .progress import ProgressCallback, ProgressFrame

logger = logging.getLogger(__name__)

SITE_URL_PATTERN = re.compile(r"SiteUrl:\s+(https?://\S+)")

TOOL_CHECKS = [
    (["git", "--version"], "Git"),
    (["node", "--version"], "Node.js"),
    (["npm", "--version"], "npm"),
    (["aws", "--version"], "AWS CLI"),
]

SST_INSTALL_COMMAND = ["npm", "install", "-g", "sst@latest"]


@dataclass
class DeployResult:
    run_id: str
    project_name: str
    deployment_url: str


def check_aws_credentials(region: str) -> str:
    """
    Confirm AWS credentials resolve to an account.

    Returns:
        AWS account ID

    Raises:
        PrerequisiteError: If no usable credentials are configured
    """
    try:
        identity = boto3.client("sts", region_name=region).get_caller_identity()
    except (BotoCoreError, ClientError) as e:
        logger.error(f"AWS credential check failed: {e}")
        raise PrerequisiteError("AWS credentials are not configured")
    return identity.get("Account", "")


def extract_project_name(repo_url: str) -> str:
    name = repo_url.rstrip("/").split("/")[-1]
    if name.endswith(".git"):
        name = name[:-4]
    return normalize_project_name(name)


def extract_site_url(output: str) -> Optional[str]:
    match = SITE_URL_PATTERN.search(output)
    return match.group(1) if match else None


class DeployRunner:
    """Runs one deployment from a repository URL."""

    def __init__(
        self,
        progress_callback: Optional[ProgressCallback] = None,
        stage: Optional[str] = None,
        region: Optional[str] = None,
        scratch_root: Optional[str] = None,
        command_runner: Callable = run_command,
        credentials_check: Callable[[str], str] = check_aws_credentials,
    ):
        self.progress_callback = progress_callback
        self.stage = stage or get_deploy_stage()
        self.region = region or get_deploy_region()
        self.scratch_root = scratch_root or get_scratch_root()
        self.run_command = command_runner
        self.credentials_check = credentials_check
        self.frames: List[ProgressFrame] = []

    def _progress(self, progress: Optional[int], step: str, message: str, deployment_url: Optional[str] = None) -> None:
        frame = ProgressFrame(progress=progress, step=step, message=message, deployment_url=deployment_url)
        self.frames.append(frame)
        if progress is not None:
            logger.info(f"[{progress}%] {message}")
        if self.progress_callback:
            self.progress_callback(frame)

    def deploy(self, repo_url: str, config: Optional[DeploymentConfig] = None) -> DeployResult:
        """
        Deploy a repository.

        Args:
            repo_url: Git URL to clone
            config: Deployment config chosen in the wizard; when omitted one
                is built from the detected project with worldwide defaults

        Returns:
            DeployResult with the live site URL

        Raises:
            SSTGenError: PrerequisiteError or DeploymentError for the failing step
        """
        run_id = new_run_id()
        project_name = config.project_name if config else extract_project_name(repo_url)
        scratch_dir: Optional[Path] = None

        try:
            self._progress(0, "Starting deployment", f"Starting deployment of {project_name}")
            repo_url = validate_clone_url(repo_url)
            self._check_prerequisites(config.region if config else self.region)
            scratch_dir = Path(tempfile.mkdtemp(prefix=f"sst-deploy-{run_id}-", dir=self.scratch_root))
            checkout = self._clone(repo_url, scratch_dir)
            analysis = self._detect(checkout)
            self._install(checkout)
            config = config or self._default_config(project_name, analysis)
            self._configure(checkout, config)
            deployment_url = self._deploy(checkout)
            self._cleanup(scratch_dir, report=True)
        except Exception as e:
            if scratch_dir is not None:
                self._cleanup(scratch_dir, report=False)
            message = e.message if isinstance(e, SSTGenError) else str(e) or "Unknown error"
            logger.error(f"Deployment {run_id} failed: {message}")
            self._progress(None, "Deployment failed", f"Deployment failed: {message}")
            if isinstance(e, SSTGenError):
                raise
            raise DeploymentError(message) from e

        self._progress(100, "Deployment complete", "Deployment successful! Your app is now live.", deployment_url)
        return DeployResult(run_id=run_id, project_name=project_name, deployment_url=deployment_url)

    def _check_prerequisites(self, region: str) -> None:
        self._progress(5, "Checking prerequisites", "Checking prerequisites...")
        for command, name in TOOL_CHECKS:
            try:
                self.run_command(command)
            except CommandFailed:
                raise PrerequisiteError(f"{name} is not installed or configured")
            self._progress(5, "Checking prerequisites", f"{name} is configured")

        self.credentials_check(region)
        self._progress(5, "Checking prerequisites", "AWS credentials are configured")

    def _clone(self, repo_url: str, scratch_dir: Path) -> Path:
        self._progress(15, "Cloning repository", f"Cloning repository: {repo_url}")
        checkout = scratch_dir / "repo"
        try:
            self.run_command(["git", "clone", "--depth", "1", "--", repo_url, str(checkout)], cwd=scratch_dir)
        except CommandFailed as e:
            raise DeploymentError(f"Failed to clone repository: {e.tail(5)}")
        self._progress(25, "Repository cloned", "Repository cloned successfully")
        return checkout

    def _detect(self, checkout: Path) -> ProjectAnalysis:
        self._progress(30, "Analyzing project", "Detecting project type...")
        analysis = analyze_checkout(checkout)
        self._progress(35, "Project analyzed", f"Detected: {analysis.framework}")
        return analysis

    def _install(self, checkout: Path) -> None:
        try:
            if (checkout / "package.json").exists():
                self._progress(40, "Installing dependencies", "Installing dependencies...")
                self._progress(42, "Installing dependencies", "Installing project dependencies...")
                self.run_command(["npm", "install"], cwd=checkout)
            else:
                self._progress(45, "Skipping dependencies", "Skipping dependency installation (static HTML)")

            self._progress(45, "Installing SST", "Installing SST...")
            self.run_command(SST_INSTALL_COMMAND, cwd=checkout)
        except CommandFailed as e:
            raise DeploymentError(f"Failed to install dependencies: {e.tail(5)}")
        self._progress(50, "Dependencies installed", "Dependencies installed")

    def _default_config(self, project_name: str, analysis: ProjectAnalysis) -> DeploymentConfig:
        return DeploymentConfig(
            project_name=project_name,
            framework=analysis.framework,
            project_type=analysis.type,
            region=self.region,
            output_dir=analysis.output_dir,
            user_distribution=Distribution.WORLDWIDE,
            build_command=analysis.build_command,
        )

    def _configure(self, checkout: Path, config: DeploymentConfig) -> None:
        self._progress(55, "Generating SST config", "Generating optimized SST configuration...")
        sst_config = SSTGenerator().generate_sst_config(config)
        (checkout / SST_CONFIG_FILE).write_text(sst_config)

        package_path = checkout / "package.json"
        if package_path.exists():
            try:
                package_path.write_text(merge_package_json(package_path.read_text()))
            except ValueError as e:
                raise DeploymentError(f"Could not update package.json: {e}")
        self._progress(65, "SST config added", "Optimized SST configuration added")

    def _deploy(self, checkout: Path) -> str:
        self._progress(70, "Deploying to AWS", f"Deploying to AWS (stage: {self.stage})...")
        self._progress(72, "Deploying to AWS", "This may take 5-10 minutes for the first deployment...")

        self._progress(75, "Bootstrapping SST", "Bootstrapping SST...")
        try:
            self.run_command(["sst", "bootstrap"], cwd=checkout)
        except CommandFailed:
            # Already bootstrapped in this account/region
            logger.debug("sst bootstrap failed; continuing with deploy")
        self._progress(75, "SST ready", "SST bootstrap ready")

        self._progress(80, "Deploying resources", "Creating AWS resources...")
        try:
            output = self.run_command(
                ["sst", "deploy", "--stage", self.stage],
                cwd=checkout,
                on_line=lambda line: self._progress(80, "Deploying resources", line),
            )
        except CommandFailed as e:
            raise DeploymentError(f"Deployment failed: {e.tail(10)}")

        deployment_url = extract_site_url(output)
        if not deployment_url:
            raise DeploymentError("Deployment finished but no SiteUrl was reported")
        self._progress(95, "Deployment successful", "AWS deployment completed!")
        return deployment_url

    def _cleanup(self, scratch_dir: Path, report: bool) -> None:
        if not scratch_dir.exists():
            return
        if report:
            self._progress(98, "Cleaning up", "Cleaning up temporary files...")
        try:
            shutil.rmtree(scratch_dir)
        except OSError as e:
            logger.warning(f"Could not clean up temporary directory {scratch_dir}: {e}")
