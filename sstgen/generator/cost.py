"""
Monthly cost estimate shown in the generated configuration summary.
"""

import math
from typing import Dict, Tuple

from ..models import DeploymentConfig, ProjectType


# (single region, worldwide) base estimates in USD per month
BASE_COST: Dict[str, Tuple[float, float]] = {
    ProjectType.STATIC: (1, 5),
    ProjectType.CSR: (2, 8),
    ProjectType.SSR: (8, 15),
}

CUSTOM_DOMAIN_COST = 0.5  # Route53 hosted zone


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def base_monthly_cost(config: DeploymentConfig) -> float:
    single, worldwide = BASE_COST.get(config.project_type, BASE_COST[ProjectType.SSR])
    cost = worldwide if config.worldwide else single
    if config.custom_domain.enabled:
        cost += CUSTOM_DOMAIN_COST
    return cost


def estimate_cost(config: DeploymentConfig) -> str:
    """
    Estimate the monthly cost range, e.g. ``"$6-12"``.

    Args:
        config: Deployment configuration

    Returns:
        Dollar range string
    """
    base = base_monthly_cost(config)
    low = max(1, _round_half_up(base * 0.8))
    high = _round_half_up(base * 1.5)
    return f"${low}-{high}"
