"""
The two deployment questions and how their answers become a DeploymentConfig.
"""

from dataclasses import dataclass, field

from .errors import ValidationError
from .models import (
    CustomDomain,
    DeploymentConfig,
    Distribution,
    ProjectAnalysis,
    Repository,
    normalize_project_name,
    validate_hostname,
)

# Region code -> label shown to the user
SUPPORTED_REGIONS = {
    "us-east-1": "US East (Virginia) - Most popular",
    "us-west-2": "US West (Oregon)",
    "eu-west-1": "Europe (Ireland)",
    "ap-southeast-1": "Asia Pacific (Singapore)",
    "ap-northeast-1": "Asia Pacific (Tokyo)",
}

DEFAULT_REGION = "us-east-1"


@dataclass
class ContextAnswers:
    """Where the users are, and whether a custom domain is wanted."""
    user_distribution: str = Distribution.SINGLE
    region: str = DEFAULT_REGION
    custom_domain: CustomDomain = field(default_factory=CustomDomain)


def project_name_for(repository: Repository) -> str:
    return normalize_project_name(repository.name)


def build_deployment_config(project_name: str, analysis: ProjectAnalysis, answers: ContextAnswers) -> DeploymentConfig:
    """
    Merge an analysis with the user's answers.

    Worldwide distribution always deploys from us-east-1; the CDN serves
    every other region.

    Raises:
        ValidationError: On an unknown distribution or region, or a custom
            domain without a hostname
    """
    if answers.user_distribution not in Distribution.ALL:
        raise ValidationError(f"Unknown user distribution: {answers.user_distribution}")

    if answers.user_distribution == Distribution.WORLDWIDE:
        region = DEFAULT_REGION
    else:
        region = answers.region or DEFAULT_REGION
        if region not in SUPPORTED_REGIONS:
            raise ValidationError(f"Unsupported region: {region}")

    custom_domain = CustomDomain(enabled=False)
    if answers.custom_domain.enabled:
        domain = (answers.custom_domain.domain or "").strip()
        if not domain:
            raise ValidationError("A custom domain needs a hostname")
        validate_hostname(domain)
        custom_domain = CustomDomain(enabled=True, domain=domain)

    return DeploymentConfig(
        project_name=project_name,
        framework=analysis.framework,
        project_type=analysis.type,
        region=region,
        output_dir=analysis.output_dir,
        user_distribution=answers.user_distribution,
        custom_domain=custom_domain,
        build_command=analysis.build_command,
    )
