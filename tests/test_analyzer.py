"""
Tests for repository classification.
"""

import json

import pytest
from unittest.mock import Mock

from sstgen.analyzer import analyze_checkout, analyze_repository, classify, parse_classification
from sstgen.analyzer.classifier import Classifier, RulesClassifier, build_analysis_prompt, get_classifier
from sstgen.analyzer.snapshot import RepoSnapshot, collect_remote
from sstgen.errors import ClassificationError
from sstgen.models import ProjectAnalysis


def snapshot(deps=None, dev_deps=None, files=None, scripts=None, manifest=True):
    package_json = None
    if manifest:
        package_json = json.dumps({
            "name": "app",
            "dependencies": deps or {},
            "devDependencies": dev_deps or {},
            "scripts": scripts or {},
        })
    return RepoSnapshot(package_json=package_json, root_files=list(files or []))


class TestRules:
    """Test the rule table."""

    def test_next_dependency_is_ssr(self):
        analysis = classify(snapshot(deps={"next": "14.0.0"}))
        assert analysis.type == "SSR"
        assert analysis.framework == "Next.js"
        assert analysis.output_dir == ".next"

    def test_ssr_wins_over_react(self):
        """Next.js apps also depend on react and react-dom."""
        analysis = classify(snapshot(deps={"next": "14", "react": "18", "react-dom": "18"}))
        assert analysis.framework == "Next.js"

    def test_gatsby_wins_over_react(self):
        analysis = classify(snapshot(deps={"gatsby": "5", "react": "18", "react-dom": "18"}))
        assert analysis.type == "STATIC"
        assert analysis.framework == "Gatsby"
        assert analysis.build_command == "gatsby build"

    def test_nuxt_wins_over_vue(self):
        analysis = classify(snapshot(deps={"nuxt": "3", "vue": "3"}))
        assert analysis.framework == "Nuxt"
        assert analysis.type == "SSR"

    def test_config_file_alone_detects_framework(self):
        analysis = classify(snapshot(files=["svelte.config.js", "package.json"]))
        assert analysis.framework == "SvelteKit"

    def test_react_spa(self):
        analysis = classify(snapshot(deps={"react": "18", "react-dom": "18"}))
        assert analysis.type == "CSR"
        assert analysis.framework == "React SPA"
        assert analysis.output_dir == "build"

    def test_react_with_vite_outputs_dist(self):
        analysis = classify(snapshot(deps={"react": "18", "react-dom": "18"}, dev_deps={"vite": "5"}))
        assert analysis.output_dir == "dist"

    def test_react_without_react_dom_is_not_spa(self):
        analysis = classify(snapshot(deps={"react": "18"}))
        assert analysis.framework != "React SPA"

    def test_angular(self):
        analysis = classify(snapshot(deps={"@angular/core": "17"}))
        assert analysis.type == "CSR"
        assert analysis.build_command == "ng build"

    def test_index_html_only(self):
        analysis = classify(snapshot(files=["index.html", "style.css"], manifest=False))
        assert analysis.type == "STATIC"
        assert analysis.framework == "Static HTML"
        assert analysis.output_dir == "."
        assert analysis.build_command is None

    def test_index_html_with_empty_manifest(self):
        analysis = classify(RepoSnapshot(package_json="{}", root_files=["index.html", "package.json"]))
        assert analysis.type == "STATIC"
        assert analysis.framework == "Static HTML"
        assert analysis.output_dir == "."
        assert analysis.build_command is None

    def test_hugo_requires_no_manifest(self):
        assert classify(snapshot(files=["config.toml"], manifest=False)).framework == "Hugo"
        assert classify(snapshot(files=["config.toml"])).framework != "Hugo"

    def test_manifest_without_framework(self):
        analysis = classify(snapshot(deps={"lodash": "4"}, scripts={"build": "webpack"}))
        assert analysis.type == "STATIC"
        assert analysis.build_command == "npm run build"
        assert analysis.confidence == 0.5

    def test_unparseable_manifest(self):
        analysis = classify(RepoSnapshot(package_json="{not json", root_files=["index.html"]))
        assert analysis.framework == "Static HTML"
        assert any("unparseable" in r for r in analysis.rationale)

    def test_wrong_typed_manifest_sections(self):
        package_json = json.dumps({"dependencies": ["react"], "scripts": "webpack"})
        analysis = classify(RepoSnapshot(package_json=package_json, root_files=["package.json"]))
        assert analysis.type == "STATIC"
        assert analysis.framework == "Static Site"
        assert analysis.build_command is None

    def test_empty_repository(self):
        analysis = classify(snapshot(manifest=False))
        assert analysis.type == "STATIC"
        assert analysis.confidence == 0.3

    def test_dockerfile_flag(self):
        analysis = classify(snapshot(deps={"next": "14"}, files=["Dockerfile"]))
        assert analysis.has_dockerfile is True


class TestParseClassification:
    """Test parsing of language model responses."""

    def test_json_with_surrounding_text(self):
        text = 'Here you go:\n{"type": "CSR", "framework": "Vue SPA", "buildCommand": "npm run build", ' \
               '"outputDir": "dist", "confidence": 0.9}\nDone.'
        analysis = parse_classification(text)
        assert analysis.type == "CSR"
        assert analysis.framework == "Vue SPA"
        assert analysis.confidence == 0.9

    def test_null_build_command(self):
        analysis = parse_classification('{"type": "STATIC", "framework": "Static HTML", "buildCommand": "null"}')
        assert analysis.build_command is None
        assert analysis.output_dir == "dist"

    def test_no_json(self):
        with pytest.raises(ClassificationError, match="No JSON"):
            parse_classification("I cannot tell")

    def test_invalid_json(self):
        with pytest.raises(ClassificationError, match="Invalid JSON"):
            parse_classification("{type: SSR}")

    def test_missing_framework(self):
        with pytest.raises(ClassificationError, match="missing"):
            parse_classification('{"type": "SSR"}')

    def test_unknown_type(self):
        with pytest.raises(ClassificationError, match="Unknown project type"):
            parse_classification('{"type": "HYBRID", "framework": "Astro"}')


class TestClassifiers:
    """Test classifier selection and reconciliation."""

    def test_unknown_name_falls_back_to_rules(self):
        assert isinstance(get_classifier("nonsense"), RulesClassifier)

    def test_rules_from_environment(self, monkeypatch):
        monkeypatch.setenv("SSTGEN_CLASSIFIER", "rules")
        assert isinstance(get_classifier(), RulesClassifier)

    def test_prompt_lists_files(self):
        prompt = build_analysis_prompt(snapshot(deps={"vue": "3"}, files=["vue.config.js"]))
        assert "vue.config.js" in prompt
        assert '"type": "SSR|CSR|STATIC"' in prompt

    def _client(self, package_json, root_files):
        client = Mock()
        client.get_file_content.side_effect = lambda owner, repo, path: package_json if path == "package.json" else None
        client.list_directory.side_effect = lambda owner, repo, path="": root_files if not path else []
        return client

    def test_collect_remote(self):
        client = self._client('{"dependencies": {"next": "14"}}', ["package.json", "next.config.js"])
        snap = collect_remote(client, "octo", "site")
        assert snap.root_files == ["package.json", "next.config.js"]
        assert snap.manifest() == {"dependencies": {"next": "14"}}

    def test_rules_classifier_used_directly(self):
        client = self._client('{"dependencies": {"next": "14"}}', ["package.json"])
        analysis = analyze_repository(client, "octo", "site", RulesClassifier())
        assert analysis.framework == "Next.js"

    def test_remote_classifier_wins_on_disagreement(self):
        class FakeModel(Classifier):
            remote = True

            def classify(self, snapshot):
                return ProjectAnalysis(type="CSR", framework="React SPA", output_dir="build")

        client = self._client('{"dependencies": {"next": "14"}}', ["package.json", "Dockerfile"])
        analysis = analyze_repository(client, "octo", "site", FakeModel())
        assert analysis.framework == "React SPA"
        assert analysis.has_dockerfile is True
        assert any("Next.js" in r for r in analysis.rationale)


def test_analyze_checkout(tmp_path):
    (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"@remix-run/node": "2"}}))
    (tmp_path / "node_modules").mkdir()
    analysis = analyze_checkout(tmp_path)
    assert analysis.framework == "Remix"
    assert analysis.type == "SSR"
