"""
SST configuration templating and downloadable bundles.
"""

from .bundle import build_config_archive, build_deploy_package
from .cost import estimate_cost
from .sst import SSTGenerator, generate_package_json, merge_package_json

__all__ = [
    "SSTGenerator",
    "generate_package_json",
    "merge_package_json",
    "estimate_cost",
    "build_config_archive",
    "build_deploy_package",
]
