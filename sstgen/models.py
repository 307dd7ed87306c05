"""
Dataclasses for repositories, analyses, deployment configs and saved configs.

The HTTP API and the saved-config store exchange these as camelCase JSON
dictionaries; ``to_dict`` / ``from_dict`` do that translation.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ValidationError


class ProjectType:
    SSR = "SSR"
    CSR = "CSR"
    STATIC = "STATIC"

    ALL = (SSR, CSR, STATIC)


class Distribution:
    SINGLE = "single"
    WORLDWIDE = "worldwide"

    ALL = (SINGLE, WORLDWIDE)


# Labels of letters, digits and inner hyphens; letters may be non-ASCII (IDN)
_HOSTNAME_LABEL = re.compile(r"[^\W_](?:[\w-]{0,61}[^\W_])?")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f\u2028\u2029]")


def validate_hostname(domain: str) -> str:
    """
    Check that ``domain`` is a dotted hostname.

    Raises:
        ValidationError: If it is not
    """
    labels = domain.split(".")
    if len(domain) > 253 or len(labels) < 2 or not all(_HOSTNAME_LABEL.fullmatch(label) for label in labels):
        raise ValidationError(f"Invalid domain name: {domain!r}")
    return domain


def _text(data: Dict[str, Any], key: str, label: Optional[str] = None) -> Optional[str]:
    """A single-line string field, or None when absent."""
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label or key} must be a string")
    if _CONTROL_CHARS.search(value):
        raise ValidationError(f"{label or key} must not contain control characters")
    return value


@dataclass
class Repository:
    """A repository as listed by the source-control host. Read-only."""
    id: int
    name: str
    full_name: str
    private: bool
    html_url: str
    clone_url: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.full_name.split("/", 1)[-1]

    @property
    def git_url(self) -> str:
        return self.clone_url or self.html_url

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "full_name": self.full_name,
            "private": self.private,
            "html_url": self.html_url,
            "clone_url": self.clone_url,
            "description": self.description,
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Repository":
        """Build from a GitHub REST payload (or our own ``to_dict`` output)."""
        if not isinstance(data, dict):
            raise ValidationError("Repository must be a JSON object")
        try:
            name = _text(data, "name")
            html_url = _text(data, "html_url")
            if not name or not html_url:
                raise KeyError("name" if not name else "html_url")
            return cls(
                id=int(data["id"]),
                name=name,
                full_name=_text(data, "full_name") or name,
                private=bool(data.get("private", False)),
                html_url=html_url,
                clone_url=_text(data, "clone_url"),
                description=data.get("description"),
                language=data.get("language"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid repository payload: {e}")


@dataclass(frozen=True)
class ProjectAnalysis:
    """Classification of a repository. Immutable once produced."""
    type: str
    framework: str
    output_dir: str
    build_command: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    confidence: float = 0.8
    has_dockerfile: bool = False
    rationale: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "framework": self.framework,
            "buildCommand": self.build_command,
            "outputDir": self.output_dir,
            "dependencies": list(self.dependencies),
            "confidence": self.confidence,
            "hasDockerfile": self.has_dockerfile,
            "rationale": list(self.rationale),
        }


@dataclass
class CustomDomain:
    enabled: bool = False
    domain: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"enabled": self.enabled}
        if self.domain:
            result["domain"] = self.domain
        return result


@dataclass
class DeploymentConfig:
    """Analysis output merged with the user's answers."""
    project_name: str
    framework: str
    project_type: str
    region: str
    output_dir: str
    user_distribution: str = Distribution.SINGLE
    custom_domain: CustomDomain = field(default_factory=CustomDomain)
    build_command: Optional[str] = None
    # Fixed defaults, not asked in the wizard
    performance: str = "fast"
    expected_users: str = "<100"

    @property
    def worldwide(self) -> bool:
        return self.user_distribution == Distribution.WORLDWIDE

    @property
    def has_build(self) -> bool:
        return bool(self.build_command) and self.build_command != "null"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectName": self.project_name,
            "framework": self.framework,
            "projectType": self.project_type,
            "region": self.region,
            "customDomain": self.custom_domain.to_dict(),
            "userDistribution": self.user_distribution,
            "buildCommand": self.build_command,
            "outputDir": self.output_dir,
            "performance": self.performance,
            "expectedUsers": self.expected_users,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentConfig":
        if not isinstance(data, dict):
            raise ValidationError("Deployment config must be a JSON object")

        project_name = (_text(data, "projectName") or "").strip()
        region = (_text(data, "region") or "").strip()
        if not project_name:
            raise ValidationError("projectName is required")
        if not region:
            raise ValidationError("region is required")

        project_type = data.get("projectType")
        if project_type not in ProjectType.ALL:
            raise ValidationError(f"Unknown projectType: {project_type}")

        distribution = data.get("userDistribution") or Distribution.SINGLE
        if distribution not in Distribution.ALL:
            raise ValidationError(f"Unknown userDistribution: {distribution}")

        domain_data = data.get("customDomain") or {}
        if not isinstance(domain_data, dict):
            raise ValidationError("customDomain must be an object")
        enabled = domain_data.get("enabled", False)
        if not isinstance(enabled, bool):
            raise ValidationError("customDomain.enabled must be true or false")
        custom_domain = CustomDomain(
            enabled=enabled,
            domain=(_text(domain_data, "domain", "customDomain.domain") or "").strip() or None,
        )
        if custom_domain.enabled:
            if not custom_domain.domain:
                raise ValidationError("customDomain.domain is required when the custom domain is enabled")
            validate_hostname(custom_domain.domain)

        build_command = _text(data, "buildCommand")
        if build_command == "null":
            build_command = None

        return cls(
            project_name=project_name,
            framework=_text(data, "framework") or "Static HTML",
            project_type=project_type,
            region=region,
            output_dir=_text(data, "outputDir") or ".",
            user_distribution=distribution,
            custom_domain=custom_domain,
            build_command=build_command,
            performance=_text(data, "performance") or "fast",
            expected_users=_text(data, "expectedUsers") or "<100",
        )


@dataclass
class SavedConfig:
    """A named DeploymentConfig owned by one account."""
    id: str
    name: str
    repository: str
    config: DeploymentConfig
    created_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "repository": self.repository,
            "config": self.config.to_dict(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedConfig":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            repository=data.get("repository", ""),
            config=DeploymentConfig.from_dict(data["config"]),
            created_at=data["createdAt"],
            updated_at=data.get("updatedAt", data["createdAt"]),
        )


def normalize_project_name(name: str) -> str:
    """Lowercase ``[a-z0-9-]`` name usable as an SST app name."""
    slug = re.sub(r"[^a-z0-9-]", "-", name.lower())
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or "unknown-project"
