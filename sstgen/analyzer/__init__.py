from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Optional

from ..models import ProjectAnalysis
from .classifier import Classifier, get_classifier, parse_classification
from .rules import classify
from .snapshot import RepoSnapshot, collect_local, collect_remote

logger = logging.getLogger(__name__)


def analyze_repository(client, owner: str, repo: str, classifier: Optional[Classifier] = None) -> ProjectAnalysis:
    """
    Classify a GitHub repository.

    The rule table always runs. When the classifier is a hosted model its
    answer is returned, and a disagreement with the rules is only logged and
    noted in the rationale.
    """
    classifier = classifier or get_classifier()
    snapshot = collect_remote(client, owner, repo)
    by_rules = classify(snapshot)

    if not classifier.remote:
        return by_rules

    by_model = classifier.classify(snapshot)
    rationale = list(by_model.rationale) + [f"Classified by {classifier.name} model"]
    if (by_model.type, by_model.framework) != (by_rules.type, by_rules.framework):
        logger.warning(
            f"{owner}/{repo}: model says {by_model.type}/{by_model.framework}, "
            f"rules say {by_rules.type}/{by_rules.framework}; using the model"
        )
        rationale.append(f"Rule table suggested {by_rules.framework} ({by_rules.type})")

    return dataclasses.replace(by_model, rationale=rationale, has_dockerfile=by_rules.has_dockerfile)


def analyze_checkout(app_root: str | Path) -> ProjectAnalysis:
    """Rule-only classification of a local clone. Never executes repository code."""
    return classify(collect_local(app_root))


__all__ = [
    "analyze_repository",
    "analyze_checkout",
    "classify",
    "get_classifier",
    "parse_classification",
    "RepoSnapshot",
]
