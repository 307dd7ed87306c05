"""
Tests for the command-line interface.
"""

import json

from click.testing import CliRunner
from unittest.mock import patch

from sstgen.cli.main import main
from sstgen.deploy import DeployResult, ProgressFrame
from sstgen.errors import PrerequisiteError
from sstgen.models import ProjectAnalysis, Repository

CONFIG = {
    "projectName": "site",
    "framework": "Vue SPA",
    "projectType": "CSR",
    "region": "eu-west-1",
    "buildCommand": "npm run build",
    "outputDir": "dist",
}


def test_generate_writes_files(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(CONFIG))
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(main, ["generate", str(config_file), "--out", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert '"eu-west-1"' in (out_dir / "sst.config.ts").read_text()
    assert (out_dir / "package.json").exists()


def test_generate_json_output(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(CONFIG))

    result = CliRunner().invoke(main, ["--json", "generate", str(config_file)])

    assert result.exit_code == 0, result.output
    assert set(json.loads(result.output)) == {"sst.config.ts", "package.json"}


def test_generate_invalid_config(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({**CONFIG, "region": ""}))

    result = CliRunner().invoke(main, ["generate", str(config_file)])

    assert result.exit_code == 1
    assert "region is required" in result.output


@patch("sstgen.cli.main.analyze_repository")
@patch("sstgen.cli.main.GitHubClient")
def test_wizard_zip(mock_client_class, mock_analyze, tmp_path):
    mock_client_class.return_value.get_repository.return_value = Repository(
        id=1, name="My-Site", full_name="octo/My-Site", private=False, html_url="https://github.com/octo/My-Site",
    )
    mock_analyze.return_value = ProjectAnalysis(type="CSR", framework="Vue SPA", output_dir="dist",
                                                build_command="npm run build")

    result = CliRunner().invoke(
        main,
        ["wizard", "octo/My-Site", "--token", "t", "--zip", "--out", str(tmp_path)],
        input="single\nap-southeast-1\ny\nshop.example.com\n",
    )

    assert result.exit_code == 0, result.output
    assert (tmp_path / "my-site-sst-config.zip").exists()
    mock_client_class.assert_called_with("t")
    mock_client_class.return_value.get_repository.assert_called_once_with("octo", "My-Site")


@patch("sstgen.cli.main.DeployRunner")
def test_deploy_prints_progress(mock_runner_class):
    def fake_deploy(repo_url, config):
        callback = mock_runner_class.call_args.kwargs["progress_callback"]
        callback(ProgressFrame(0, "Starting deployment", "Starting deployment of app"))
        callback(ProgressFrame(100, "Deployment complete", "Live", "https://d1.cloudfront.net"))
        return DeployResult(run_id="d-1", project_name="app", deployment_url="https://d1.cloudfront.net")

    mock_runner_class.return_value.deploy.side_effect = fake_deploy

    result = CliRunner().invoke(main, ["deploy", "https://github.com/octo/app"])

    assert result.exit_code == 0, result.output
    assert "[  0%] Starting deployment of app" in result.output
    assert "https://d1.cloudfront.net" in result.output


@patch("sstgen.cli.main.DeployRunner")
def test_deploy_failure_exit_code(mock_runner_class):
    mock_runner_class.return_value.deploy.side_effect = PrerequisiteError("Git is not installed or configured")

    result = CliRunner().invoke(main, ["deploy", "https://github.com/octo/app"])

    assert result.exit_code == 1
    assert "Git is not installed" in result.output


@patch("sstgen.cli.main.FileConfigStore")
@patch("sstgen.cli.main.analyze_repository")
@patch("sstgen.cli.main.GitHubClient")
def test_wizard_saves_under_full_name(mock_client_class, mock_analyze, mock_store_class, tmp_path):
    client = mock_client_class.return_value
    client.get_repository.return_value = Repository(
        id=1, name="Shop", full_name="Octo/Shop", private=False, html_url="https://github.com/Octo/Shop",
    )
    client.get_authenticated_user.return_value = {"login": "octo", "email": None}
    mock_analyze.return_value = ProjectAnalysis(type="STATIC", framework="Static HTML", output_dir=".")
    mock_store_class.return_value.save.return_value.name = "shop"
    mock_store_class.return_value.save.return_value.id = "c-20240101-000000-abcd"

    result = CliRunner().invoke(
        main,
        ["wizard", "https://github.com/octo/shop", "--token", "t", "--out", str(tmp_path), "--save", "shop"],
        input="worldwide\nn\n",
    )

    assert result.exit_code == 0, result.output
    account, name, repository, config = mock_store_class.return_value.save.call_args.args
    assert (account, name, repository) == ("octo", "shop", "Octo/Shop")
    assert config.project_name == "shop"
    assert config.region == "us-east-1"


@patch("sstgen.cli.main.DeployRunner")
def test_deploy_malformed_config_file(mock_runner_class, tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("{not json")

    result = CliRunner().invoke(main, ["deploy", "https://github.com/octo/app", "--config", str(config_file)])

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "Traceback" not in result.output
    mock_runner_class.return_value.deploy.assert_not_called()
