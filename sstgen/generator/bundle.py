"""
Downloadable archives: the bare configuration and the local deploy package.
"""

import io
import json
import shlex
import zipfile
from typing import Dict, Tuple

from ..models import DeploymentConfig, ProjectType, Repository, normalize_project_name
from .sst import SSTGenerator, render

INSTRUCTIONS_TEMPLATE = """# SST Deployment Instructions

## Prerequisites
1. Install SST: `npm install -g sst`
2. Configure AWS CLI with your credentials
3. Ensure you have the necessary AWS permissions

## Setup Steps
1. Extract these files to your project root
2. Install dependencies: `npm install`
3. Deploy to AWS: `sst deploy --stage production`

## What gets deployed:
- {{COMPUTE}}
- {{DOMAIN}}
- {{DISTRIBUTION}}

## Estimated monthly cost: $5-25 (depending on traffic)

For more information, visit: https://sst.dev/docs/
"""

QUICK_DEPLOY_TEMPLATE = """#!/usr/bin/env bash
# Local SST deployment for {{PROJECT_SLUG}}
set -euo pipefail

PROJECT_NAME={{PROJECT_NAME}}
REPO_URL={{REPO_URL}}
AWS_REGION={{REGION}}
SCRIPT_DIR="$(cd "$(dirname "${BASH_SOURCE[0]}")" && pwd)"
WORK_DIR="$SCRIPT_DIR/temp-$(date +%s)"

info()    { printf '\\033[36m[info]\\033[0m %s\\n' "$1"; }
success() { printf '\\033[32m[ok]\\033[0m %s\\n' "$1"; }
fail()    { printf '\\033[31m[error]\\033[0m %s\\n' "$1" >&2; exit 1; }

cleanup() {
  if [ -d "$WORK_DIR" ]; then
    rm -rf "$WORK_DIR"
  fi
}
trap cleanup EXIT

echo "====================================="
echo " SST Local Deployment"
echo "   Project: $PROJECT_NAME"
echo "====================================="

info "Checking prerequisites..."
command -v git  >/dev/null 2>&1 || fail "Git not installed. Please install Git first."
command -v node >/dev/null 2>&1 || fail "Node.js not installed. Please install Node.js first."
command -v npm  >/dev/null 2>&1 || fail "npm not installed. Please install npm first."
aws sts get-caller-identity >/dev/null 2>&1 || fail "AWS CLI not configured. Run: aws configure"
success "Prerequisites available"
info "AWS Account: $(aws sts get-caller-identity --query Account --output text)"
info "AWS Region: $AWS_REGION"

echo
echo "Deployment Summary:"
echo "   Project: $PROJECT_NAME"
echo "   Repository: $REPO_URL"
echo "   Region: $AWS_REGION"
echo "   This will create AWS resources in your account."
read -r -p "Continue with deployment? (y/N): " answer
case "$answer" in
  y|Y|yes|YES) ;;
  *) info "Deployment cancelled by user"; exit 0 ;;
esac

info "Cloning repository..."
git clone -- "$REPO_URL" "$WORK_DIR"
cp "$SCRIPT_DIR/sst.config.ts" "$WORK_DIR/sst.config.ts"
success "Repository cloned"

info "Installing dependencies..."
(cd "$WORK_DIR" && npm install)
(cd "$WORK_DIR" && (npm list sst >/dev/null 2>&1 || npm install sst@latest))
success "Dependencies installed"

info "Deploying to AWS (this may take 5-10 minutes for the first deployment)..."
(cd "$WORK_DIR" && npx sst deploy --stage production)
success "Deployment completed successfully!"

echo
echo "Useful Commands:"
echo "   View logs:         npx sst logs"
echo "   Remove deployment: npx sst remove"
echo "   Dev mode:          npx sst dev"
"""

README_TEMPLATE = """# {{PROJECT_NAME}} - AWS Deployment

## Quick Start

1. **Prerequisites Check**
   - AWS CLI configured (`aws configure`)
   - Node.js installed
   - Git installed

2. **Deploy**
   ```bash
   bash quick-deploy.sh
   ```

## What This Does

- Clones your repository: {{HTML_URL}}
- Sets up SST configuration for {{FRAMEWORK}}
- Deploys to AWS region: {{REGION}}
- {{DISTRIBUTION}}
- {{DOMAIN}}

## Manual Deployment

If you prefer manual control:

```bash
# 1. Clone your repository
git clone {{REPO_URL}} my-project
cd my-project

# 2. Copy SST config files (sst.config.ts) to your project root

# 3. Install dependencies
npm install
npm install sst@latest

# 4. Deploy
npx sst deploy --stage production
```

## Useful Commands

- `npx sst dev` - Start development mode
- `npx sst logs` - View deployment logs
- `npx sst remove` - Remove all AWS resources
- `npx sst console` - Open web console

## Security Note

This deployment runs entirely on your local machine using your AWS credentials. Your credentials never leave your computer.
"""


def _zip(files: Dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def deployment_instructions(config: DeploymentConfig) -> str:
    if config.project_type == ProjectType.SSR:
        compute = "Lambda functions for server-side rendering"
    else:
        compute = "S3 bucket for static hosting"
    return render(INSTRUCTIONS_TEMPLATE, {
        "COMPUTE": compute,
        "DOMAIN": "Custom domain configuration" if config.custom_domain.enabled else "Default AWS URLs",
        "DISTRIBUTION": "CloudFront CDN for global distribution" if config.worldwide else "Regional deployment",
    })


def build_config_archive(config: DeploymentConfig) -> Tuple[str, bytes]:
    """
    Zip the generated configuration with deployment instructions.

    Returns:
        Tuple of (download filename, zip bytes)
    """
    files = SSTGenerator().generate(config)
    files["DEPLOYMENT_INSTRUCTIONS.md"] = deployment_instructions(config)
    return f"{normalize_project_name(config.project_name)}-sst-config.zip", _zip(files)


def quick_deploy_script(repository: Repository, config: DeploymentConfig) -> str:
    """Bash script that clones and deploys on the user's machine. Values are shell-quoted."""
    return render(QUICK_DEPLOY_TEMPLATE, {
        "PROJECT_SLUG": normalize_project_name(config.project_name),
        "PROJECT_NAME": shlex.quote(config.project_name),
        "REPO_URL": shlex.quote(repository.git_url),
        "REGION": shlex.quote(config.region or "us-east-1"),
    })


def deploy_package_json(config: DeploymentConfig) -> str:
    package = {
        "name": normalize_project_name(config.project_name),
        "version": "1.0.0",
        "private": True,
        "scripts": {
            "deploy": "bash quick-deploy.sh",
            "dev": "sst dev",
            "build": "sst build",
            "remove": "sst remove",
        },
        "devDependencies": {
            "sst": "latest",
        },
    }
    return json.dumps(package, indent=2)


def deploy_readme(repository: Repository, config: DeploymentConfig) -> str:
    if config.custom_domain.enabled:
        domain = f"Configures custom domain: {config.custom_domain.domain}"
    else:
        domain = "Uses AWS-generated URLs"
    return render(README_TEMPLATE, {
        "PROJECT_NAME": config.project_name,
        "HTML_URL": repository.html_url,
        "REPO_URL": shlex.quote(repository.git_url),
        "FRAMEWORK": config.framework,
        "REGION": config.region,
        "DISTRIBUTION": "Sets up global CDN" if config.worldwide else "Regional deployment",
        "DOMAIN": domain,
    })


def build_deploy_package(repository: Repository, config: DeploymentConfig) -> Tuple[str, bytes]:
    """
    Zip the configuration together with a local deploy script and README.

    The package's own package.json (deploy scripts) replaces the generated one.
    """
    files = SSTGenerator().generate(config)
    files["quick-deploy.sh"] = quick_deploy_script(repository, config)
    files["package.json"] = deploy_package_json(config)
    files["README.md"] = deploy_readme(repository, config)
    return f"{normalize_project_name(config.project_name)}-deploy-package.zip", _zip(files)
