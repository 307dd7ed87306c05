"""
SST configuration rendering.

Templates use ``{{NAME}}`` placeholders. Values are interpolated literally;
the emitted TypeScript is not validated.
"""

import json
import logging
from typing import Dict, Optional

from ..models import DeploymentConfig, ProjectType
from .cost import estimate_cost

logger = logging.getLogger(__name__)

SST_CONFIG_FILE = "sst.config.ts"
PACKAGE_JSON_FILE = "package.json"

SST_SCRIPTS = {
    "sst:dev": "sst dev",
    "sst:build": "sst build",
    "sst:deploy": "sst deploy",
    "sst:remove": "sst remove",
}
SST_VERSION = "^3.0.0"

# Server-rendered frameworks and the construct that hosts them
SSR_CONSTRUCTS = {
    "Next.js": "NextjsSite",
    "Nuxt": "SvelteKitSite",
    "SvelteKit": "SvelteKitSite",
    "Remix": "RemixSite",
}

APP_TEMPLATE = """import { SSTConfig } from "sst";
import { {{CONSTRUCT}} } from "sst/constructs";

export default {
  config(_input) {
    return {
      name: {{PROJECT_NAME}},
      region: {{REGION}},
    };
  },
  stacks(app) {
    app.stack(function Site({ stack }) {
      const site = new {{CONSTRUCT}}(stack, {{PROJECT_NAME}}, {{{PROPS}}
      });

      stack.addOutputs({
        SiteUrl: site.url,{{EXTRA_OUTPUTS}}
      });
    });
  },
} satisfies SSTConfig;

// Configuration Summary:
{{SUMMARY}}"""

SSR_PROPS = """{{DOMAIN}}{{EDGE}}

        // Smart defaults for optimal performance
        runtime: {
          // Balanced memory for good performance
          memory: "1024 MB",
          timeout: "10 seconds",
        },

        environment: {
          // Add your environment variables here
          NODE_ENV: "production",
        },"""

CSR_PROPS = """
        path: ".",
        buildCommand: {{BUILD_COMMAND}},
        buildOutput: {{OUTPUT_DIR}},{{DOMAIN}}{{CDN}}

        environment: {
          // Add your runtime environment variables here
          REACT_APP_ENV: "production",
        },"""

STATIC_PROPS = """
        path: ".",{{BUILD_LINE}}
        buildOutput: {{OUTPUT_DIR}},{{DOMAIN}}{{CDN}}"""

DOMAIN_BLOCK = """
        customDomain: {
          domainName: {{DOMAIN_NAME}},
        },"""

EDGE_BLOCK = """

        // Global CDN for worldwide users
        edge: {
          // Automatic global distribution and caching
          viewerProtocolPolicy: "redirect-to-https",
        },"""

CSR_CDN_BLOCK = """

        // Global CloudFront CDN for worldwide users
        cloudFrontDistribution: {
          defaultBehavior: {
            // Smart caching and compression
            cachePolicy: "CachingOptimized",
            compress: true,
            viewerProtocolPolicy: "redirect-to-https",
          },
          // Optimized caching for different file types
          additionalBehaviors: {
            "/static/*": {
              // Long cache for static assets
              cachePolicy: "CachingOptimized",
              compress: true,
            },
            "*.css": {
              cachePolicy: "CachingOptimized",
              compress: true,
            },
            "*.js": {
              cachePolicy: "CachingOptimized",
              compress: true,
            },
          },
        },"""

STATIC_CDN_BLOCK = """

        // Global CloudFront CDN for worldwide users
        cloudFrontDistribution: {
          defaultBehavior: {
            // Automatic compression and caching
            cachePolicy: "CachingOptimized",
            compress: true,
            viewerProtocolPolicy: "redirect-to-https",
          },
          // Smart caching for different content types
          additionalBehaviors: {
            "*.html": {
              // Short cache for HTML (content updates)
              cachePolicyId: "4135ea2d-6df8-44a3-9df3-4b5a84be39ad",
            },
            "*.css": {
              cachePolicy: "CachingOptimized",
            },
            "*.js": {
              cachePolicy: "CachingOptimized",
            },
            "*.png,*.jpg,*.jpeg,*.gif,*.ico,*.svg": {
              // Very long cache for images
              cachePolicy: "CachingOptimized",
            },
          },
        },"""

CDN_OUTPUT = """
        CDNUrl: site.cloudFrontDistribution?.distributionDomainName,"""


def render(template: str, values: Dict[str, str]) -> str:
    """Replace ``{{KEY}}`` placeholders with their values."""
    result = template
    for key, value in values.items():
        result = result.replace("{{" + key + "}}", value)
    return result


def ts_string(value: Optional[str]) -> str:
    """Quote a value as a TypeScript string literal."""
    return json.dumps(value if value is not None else "", ensure_ascii=False)


class SSTGenerator:
    """Renders ``sst.config.ts`` and a matching ``package.json``."""

    def generate(self, config: DeploymentConfig) -> Dict[str, str]:
        """
        Render the configuration files for a deployment.

        Args:
            config: Deployment configuration

        Returns:
            Mapping of file name to file content
        """
        logger.info(f"Generating SST config for {config.project_name} ({config.project_type}/{config.framework})")
        return {
            SST_CONFIG_FILE: self.generate_sst_config(config),
            PACKAGE_JSON_FILE: generate_package_json(config),
        }

    def generate_sst_config(self, config: DeploymentConfig) -> str:
        if config.project_type == ProjectType.SSR:
            return self._ssr_config(config)
        elif config.project_type == ProjectType.CSR:
            return self._csr_config(config)
        else:
            return self._static_config(config)

    def _common(self, config: DeploymentConfig) -> Dict[str, str]:
        domain = ""
        if config.custom_domain.enabled:
            domain = render(DOMAIN_BLOCK, {"DOMAIN_NAME": ts_string(config.custom_domain.domain)})
        return {
            "PROJECT_NAME": ts_string(config.project_name),
            "REGION": ts_string(config.region),
            "DOMAIN": domain,
            "BUILD_COMMAND": ts_string(config.build_command),
            "OUTPUT_DIR": ts_string(config.output_dir),
        }

    def _summary(self, lines: Dict[str, str]) -> str:
        # One comment line per entry
        return "\n".join(f"// • {label}: {' '.join(str(value).split())}" for label, value in lines.items())

    def _domain_label(self, config: DeploymentConfig, suffix: str = "") -> str:
        if config.custom_domain.enabled:
            return f"{config.custom_domain.domain}{suffix}"
        return "Default AWS URL"

    def _ssr_config(self, config: DeploymentConfig) -> str:
        values = self._common(config)
        values["EDGE"] = EDGE_BLOCK if config.worldwide else ""
        props = render(SSR_PROPS, values)
        summary = self._summary({
            "Framework": f"{config.framework} (Server-Side Rendered)",
            "Distribution": "Global CDN" if config.worldwide else "Regional",
            "Custom Domain": self._domain_label(config),
            "Estimated Cost": f"{estimate_cost(config)}/month",
        })
        return render(APP_TEMPLATE, {
            **values,
            "CONSTRUCT": SSR_CONSTRUCTS.get(config.framework, "NextjsSite"),
            "PROPS": props,
            "EXTRA_OUTPUTS": "",
            "SUMMARY": summary,
        })

    def _csr_config(self, config: DeploymentConfig) -> str:
        values = self._common(config)
        values["CDN"] = CSR_CDN_BLOCK if config.worldwide else ""
        props = render(CSR_PROPS, values)
        summary = self._summary({
            "Type": f"{config.framework} (Client-Side Rendered)",
            "Distribution": "Global CDN" if config.worldwide else "Regional",
            "Custom Domain": self._domain_label(config),
            "Estimated Cost": f"{estimate_cost(config)}/month",
        })
        return render(APP_TEMPLATE, {
            **values,
            "CONSTRUCT": "StaticSite",
            "PROPS": props,
            "EXTRA_OUTPUTS": CDN_OUTPUT if config.worldwide else "",
            "SUMMARY": summary,
        })

    def _static_config(self, config: DeploymentConfig) -> str:
        values = self._common(config)
        values["CDN"] = STATIC_CDN_BLOCK if config.worldwide else ""
        values["BUILD_LINE"] = ""
        if config.has_build:
            values["BUILD_LINE"] = f"\n        buildCommand: {ts_string(config.build_command)},"
        props = render(STATIC_PROPS, values)
        summary = self._summary({
            "Type": "Generated Static Site" if config.has_build else "Pure HTML/CSS",
            "Distribution": "Global CDN (faster worldwide)" if config.worldwide else "Regional (lower cost)",
            "Custom Domain": self._domain_label(config, " (with free SSL)"),
            "Smart Features": "Automatic compression, optimized caching, HTTPS",
            "Estimated Cost": f"{estimate_cost(config)}/month",
        })
        return render(APP_TEMPLATE, {
            **values,
            "CONSTRUCT": "StaticSite",
            "PROPS": props,
            "EXTRA_OUTPUTS": CDN_OUTPUT if config.worldwide else "",
            "SUMMARY": summary,
        })


def generate_package_json(config: DeploymentConfig) -> str:
    """Standalone manifest carrying the SST scripts."""
    package = {
        "name": config.project_name,
        "version": "0.1.0",
        "scripts": {
            "sst:dev": "sst dev",
            "sst:build": "sst build",
            "sst:deploy": "sst deploy",
            "sst:deploy:prod": "sst deploy --stage production",
            "sst:remove": "sst remove",
        },
        "devDependencies": {
            "sst": SST_VERSION,
        },
    }
    return json.dumps(package, indent=2)


def merge_package_json(existing: str) -> str:
    """
    Add the SST scripts and devDependency to an existing manifest.

    Existing keys are kept; SST entries replace same-named ones.
    """
    package = json.loads(existing or "{}")
    if not isinstance(package, dict):
        package = {}
    package["scripts"] = {**(package.get("scripts") or {}), **SST_SCRIPTS}
    package["devDependencies"] = {**(package.get("devDependencies") or {}), "sst": SST_VERSION}
    return json.dumps(package, indent=2)
