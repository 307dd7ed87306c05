"""
Classifier interface and language-model adapters for repository analysis.
"""

import json
import logging
import os
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..errors import ClassificationError, UpstreamError
from ..models import ProjectAnalysis, ProjectType
from ..settings import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_OPENAI_MODEL,
    get_classifier_model,
    get_classifier_name,
)
from .rules import classify
from .snapshot import RepoSnapshot

logger = logging.getLogger(__name__)


class Classifier(ABC):
    """Turns a repository snapshot into a ProjectAnalysis."""

    #: True when the classifier asks a hosted model rather than the rule table
    remote = False

    def __init__(self, model: Optional[str] = None):
        self.model = model
        self.name = self.__class__.__name__.replace("Classifier", "").lower()

    @abstractmethod
    def classify(self, snapshot: RepoSnapshot) -> ProjectAnalysis:
        """
        Classify the repository.

        Raises:
            ClassificationError: If the result is malformed or incomplete
            UpstreamError: If the model host cannot be reached
        """


class RulesClassifier(Classifier):
    """Offline classifier backed by the fixed rule table."""

    def classify(self, snapshot: RepoSnapshot) -> ProjectAnalysis:
        return classify(snapshot)


class AnthropicClassifier(Classifier):
    """Anthropic Messages API classifier."""

    remote = True

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        super().__init__(model or DEFAULT_ANTHROPIC_MODEL)
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")

    def classify(self, snapshot: RepoSnapshot) -> ProjectAnalysis:
        if not self.api_key:
            raise UpstreamError("ANTHROPIC_API_KEY is not configured",
                                hint="Set ANTHROPIC_API_KEY or use SSTGEN_CLASSIFIER=rules")

        import anthropic
        client = anthropic.Anthropic(api_key=self.api_key)

        start_time = time.time()
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=2000,
                messages=[{"role": "user", "content": build_analysis_prompt(snapshot)}],
            )
        except anthropic.APIError as e:
            logger.error(f"Anthropic API call failed: {e}")
            raise UpstreamError("Failed to analyze repository with the language model")

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"Anthropic API call completed in {duration_ms}ms")

        text = ""
        if response.content and response.content[0].type == "text":
            text = response.content[0].text
        return parse_classification(text)


class OpenAIClassifier(Classifier):
    """OpenAI chat completions classifier using JSON mode."""

    remote = True

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        super().__init__(model or DEFAULT_OPENAI_MODEL)
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")

    def classify(self, snapshot: RepoSnapshot) -> ProjectAnalysis:
        if not self.api_key:
            raise UpstreamError("OPENAI_API_KEY is not configured",
                                hint="Set OPENAI_API_KEY or use SSTGEN_CLASSIFIER=rules")

        import openai
        client = openai.OpenAI(api_key=self.api_key)

        start_time = time.time()
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": build_analysis_prompt(snapshot)}],
                response_format={"type": "json_object"},
                temperature=0.1,
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI API call failed: {e}")
            raise UpstreamError("Failed to analyze repository with the language model")

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"OpenAI API call completed in {duration_ms}ms")

        return parse_classification(response.choices[0].message.content or "")


def build_analysis_prompt(snapshot: RepoSnapshot) -> str:
    """Prompt describing the repository and the detection rules."""
    config_sections = "\n\n".join(
        f"{name}:\n{content[:500]}..." for name, content in snapshot.config_files.items()
    )
    return f"""
You are an expert at analyzing JavaScript/TypeScript repositories to detect their framework and project type.

Analyze this repository and return a JSON response with the project analysis:

**Repository Files:**
Root files: {', '.join(snapshot.root_files)}
Src files: {', '.join(snapshot.src_files)}

**Package.json:**
{snapshot.package_json or 'None found'}

**Config Files:**
{config_sections or 'None found'}

**Detection Rules:**
1. SSR Frameworks (highest priority):
   - Next.js: has "next" dependency OR next.config.js/ts
   - Nuxt: has "nuxt" dependency OR nuxt.config.js/ts
   - SvelteKit: has "@sveltejs/kit" dependency OR svelte.config.js
   - Remix: has "@remix-run/node" OR remix.config.js

2. CSR Frameworks:
   - React SPA: has "react" + "react-dom" but NOT Next.js/Remix/Gatsby
   - Vue SPA: has "vue" but NOT Nuxt
   - Angular: has "@angular/core"

3. Static Site Generators:
   - Gatsby: has "gatsby" dependency
   - 11ty: has "@11ty/eleventy" dependency
   - Jekyll: has _config.yml or Gemfile
   - Hugo: has config.toml/yaml

4. Pure Static: has index.html but no framework dependencies

**Return this exact JSON format:**
{{
  "type": "SSR|CSR|STATIC",
  "framework": "Next.js|React SPA|Vue SPA|Angular|Nuxt|SvelteKit|Remix|Gatsby|11ty|Jekyll|Hugo|Static HTML",
  "buildCommand": "npm run build|gatsby build|null",
  "outputDir": ".next|build|dist|public|_site|.",
  "dependencies": ["list", "of", "key", "dependencies"],
  "confidence": 0.95
}}

Analyze the repository data and respond with ONLY the JSON, no other text.
"""


_JSON_SPAN = re.compile(r"\{[\s\S]*\}")


def parse_classification(text: str) -> ProjectAnalysis:
    """
    Parse a model response into a ProjectAnalysis.

    Text around the JSON object is ignored. Anything that does not yield an
    object with a known ``type`` and a ``framework`` is an error.
    """
    match = _JSON_SPAN.search(text or "")
    if not match:
        raise ClassificationError("No JSON found in language model response")

    try:
        data: Dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Invalid JSON in language model response: {e}")

    if not isinstance(data, dict) or not data.get("type") or not data.get("framework"):
        raise ClassificationError("Language model response is missing type or framework")
    if data["type"] not in ProjectType.ALL:
        raise ClassificationError(f"Unknown project type from language model: {data['type']}")

    build_command = data.get("buildCommand")
    if build_command in ("null", ""):
        build_command = None

    dependencies = data.get("dependencies") or []
    if not isinstance(dependencies, list):
        dependencies = []

    try:
        confidence = float(data.get("confidence") or 0.8)
    except (TypeError, ValueError):
        confidence = 0.8

    return ProjectAnalysis(
        type=data["type"],
        framework=str(data["framework"]),
        build_command=build_command,
        output_dir=data.get("outputDir") or "dist",
        dependencies=[str(d) for d in dependencies],
        confidence=confidence,
    )


def get_classifier(name: Optional[str] = None, model: Optional[str] = None) -> Classifier:
    """Get a classifier instance by name (defaults from the environment)."""
    if not name:
        name = get_classifier_name()
    if not model:
        model = get_classifier_model()

    classifiers = {
        "rules": RulesClassifier,
        "anthropic": AnthropicClassifier,
        "openai": OpenAIClassifier,
    }

    classifier_class = classifiers.get(name.lower())
    if not classifier_class:
        logger.warning(f"Unknown classifier: {name}, using rules")
        classifier_class = RulesClassifier

    return classifier_class(model)
