"""Main CLI entrypoint for sstgen."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from ..analyzer import analyze_repository, get_classifier
from ..deploy import DeployRunner, ProgressFrame
from ..errors import SSTGenError
from ..generator import SSTGenerator, build_config_archive
from ..github import GitHubClient, parse_repo_url
from ..models import CustomDomain, DeploymentConfig, Distribution
from ..settings import get_github_token, get_log_level
from ..store import FileConfigStore
from ..wizard import SUPPORTED_REGIONS, ContextAnswers, build_deployment_config, project_name_for


@click.group()
@click.option('--json', 'output_json', is_flag=True, help='Output machine-readable JSON')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def main(ctx, output_json, verbose):
    """sstgen - Generate SST deployment configurations for GitHub repositories."""
    ctx.ensure_object(dict)
    ctx.obj['json'] = output_json
    logging.basicConfig(
        level=logging.DEBUG if verbose else get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _json_output(data: Any) -> None:
    """Output data as JSON."""
    click.echo(json.dumps(data, indent=None))


def _human_output(message: str) -> None:
    """Output human-readable message."""
    if not click.get_current_context().obj.get('json', False):
        click.echo(message)


def _fail(error: Exception, code: int = 1) -> None:
    message = error.message if isinstance(error, SSTGenError) else str(error)
    if click.get_current_context().obj.get('json', False):
        payload = error.to_dict() if isinstance(error, SSTGenError) else {'message': message}
        _json_output({'error': payload})
    else:
        click.echo(f"❌ {message}", err=True)
        if isinstance(error, SSTGenError):
            click.echo(f"   Hint: {error.hint}", err=True)
    sys.exit(code)


def _client(token: Optional[str]) -> GitHubClient:
    token = token or get_github_token()
    if not token:
        raise click.UsageError("A GitHub token is required (--token or GITHUB_TOKEN)")
    return GitHubClient(token)


def _write_files(files: Dict[str, str], out_dir: Path) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (out_dir / name).write_text(content)
        _human_output(f"  wrote {out_dir / name}")


@main.command()
@click.option('--host', default='0.0.0.0', help='Interface to bind')
@click.option('--port', type=int, default=None, help='Port (default $PORT or 8080)')
def serve(host, port):
    """Run the REST API."""
    from ..api.app import run
    run(host=host, port=port)


@main.command()
@click.option('--token', envvar='GITHUB_TOKEN', help='GitHub access token')
@click.pass_context
def repos(ctx, token):
    """List repositories for the token's account."""
    try:
        repositories = _client(token).list_repositories()
    except SSTGenError as e:
        _fail(e)
        return

    if ctx.obj['json']:
        _json_output([r.to_dict() for r in repositories])
        return
    for repo in repositories:
        visibility = "private" if repo.private else "public"
        language = f" [{repo.language}]" if repo.language else ""
        click.echo(f"{repo.full_name} ({visibility}){language}")


@main.command()
@click.argument('repository')
@click.option('--token', envvar='GITHUB_TOKEN', help='GitHub access token')
@click.option('--classifier', 'classifier_name', type=click.Choice(['rules', 'anthropic', 'openai']),
              default=None, help='Classifier (default from SSTGEN_CLASSIFIER)')
@click.pass_context
def analyze(ctx, repository, token, classifier_name):
    """Classify OWNER/REPO."""
    try:
        owner, repo = parse_repo_url(repository)
        analysis = analyze_repository(_client(token), owner, repo, get_classifier(classifier_name))
    except SSTGenError as e:
        _fail(e)
        return

    if ctx.obj['json']:
        _json_output(analysis.to_dict())
        return
    click.echo(f"📦 {owner}/{repo}")
    click.echo(f"Type: {analysis.type}")
    click.echo(f"Framework: {analysis.framework}")
    click.echo(f"Build command: {analysis.build_command or '-'}")
    click.echo(f"Output dir: {analysis.output_dir}")
    click.echo(f"Confidence: {analysis.confidence:.2f}")
    for note in analysis.rationale:
        click.echo(f"  - {note}")


@main.command()
@click.argument('repository')
@click.option('--token', envvar='GITHUB_TOKEN', help='GitHub access token')
@click.option('--out', 'out_dir', type=click.Path(file_okay=False), default='.', help='Output directory')
@click.option('--zip', 'as_zip', is_flag=True, help='Write a zip archive instead of loose files')
@click.option('--save', 'save_name', default=None, help='Save the configuration under this name')
@click.pass_context
def wizard(ctx, repository, token, out_dir, as_zip, save_name):
    """Interactive setup: analyze OWNER/REPO, answer 2 questions, get the config."""
    try:
        client = _client(token)
        owner, repo = parse_repo_url(repository)
        _human_output(f"🔍 Analyzing {owner}/{repo}...")
        repository_info = client.get_repository(owner, repo)
        analysis = analyze_repository(client, owner, repo, get_classifier())
        _human_output(f"✅ Detected {analysis.framework} ({analysis.type})")

        distribution = click.prompt(
            "Where are your users located?",
            type=click.Choice(Distribution.ALL),
            default=Distribution.SINGLE,
        )
        region = "us-east-1"
        if distribution == Distribution.SINGLE:
            region = click.prompt(
                "Choose your region",
                type=click.Choice(list(SUPPORTED_REGIONS)),
                default="us-east-1",
            )
        custom_domain = CustomDomain(enabled=False)
        if click.confirm("Use a custom domain?", default=False):
            custom_domain = CustomDomain(enabled=True, domain=click.prompt("Domain name"))

        answers = ContextAnswers(user_distribution=distribution, region=region, custom_domain=custom_domain)
        config = build_deployment_config(project_name_for(repository_info), analysis, answers)

        target = Path(out_dir)
        if as_zip:
            filename, content = build_config_archive(config)
            target.mkdir(parents=True, exist_ok=True)
            (target / filename).write_bytes(content)
            _human_output(f"📦 Wrote {target / filename}")
        else:
            _write_files(SSTGenerator().generate(config), target)

        if save_name:
            account = client.get_authenticated_user()["login"]
            saved = FileConfigStore().save(account, save_name, repository_info.full_name, config)
            _human_output(f"💾 Saved as {saved.name} ({saved.id})")

        if ctx.obj['json']:
            _json_output(config.to_dict())
    except SSTGenError as e:
        _fail(e)


@main.command()
@click.argument('config_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--out', 'out_dir', type=click.Path(file_okay=False), default='.', help='Output directory')
@click.pass_context
def generate(ctx, config_file, out_dir):
    """Render files from a DeploymentConfig JSON file."""
    try:
        with open(config_file) as f:
            config = DeploymentConfig.from_dict(json.load(f))
        files = SSTGenerator().generate(config)
    except json.JSONDecodeError as e:
        _fail(e)
        return
    except SSTGenError as e:
        _fail(e)
        return

    if ctx.obj['json']:
        _json_output(files)
    else:
        _write_files(files, Path(out_dir))


@main.command()
@click.argument('repo_url')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='DeploymentConfig JSON file (default: detect and deploy worldwide)')
@click.option('--stage', default=None, help='SST stage (default $SSTGEN_DEPLOY_STAGE or production)')
@click.pass_context
def deploy(ctx, repo_url, config_file, stage):
    """Clone REPO_URL and deploy it with SST, printing progress."""
    output_json = ctx.obj['json']

    def on_progress(frame: ProgressFrame) -> None:
        if output_json:
            _json_output(frame.to_dict())
        elif frame.progress is None:
            click.echo(click.style(f"[----] {frame.message}", fg='red'))
        else:
            click.echo(f"[{frame.progress:3d}%] {frame.message}")

    try:
        config = None
        if config_file:
            with open(config_file) as f:
                config = DeploymentConfig.from_dict(json.load(f))
        result = DeployRunner(progress_callback=on_progress, stage=stage).deploy(repo_url, config)
    except json.JSONDecodeError as e:
        _fail(e)
        return
    except SSTGenError as e:
        _fail(e)
        return

    _human_output(f"🌐 Live at {click.style(result.deployment_url, fg='blue', underline=True)}")


@main.command()
@click.option('--token', envvar='GITHUB_TOKEN', help='GitHub access token')
@click.pass_context
def configs(ctx, token):
    """List saved configurations for the token's account."""
    try:
        account = _client(token).get_authenticated_user()["login"]
        saved = FileConfigStore().list(account)
    except SSTGenError as e:
        _fail(e)
        return

    if ctx.obj['json']:
        _json_output([s.to_dict() for s in saved])
        return
    if not saved:
        click.echo("No saved configurations")
    for entry in saved:
        click.echo(f"{entry.id}  {entry.name}  {entry.repository}  "
                   f"{entry.config.project_type}/{entry.config.region}  {entry.created_at}")


if __name__ == '__main__':
    main()
