"""Evaluation templates (rubrics) and their resolution.

Public API
----------
- resolve_template / resolve_template_ids: pure three-tier fallback
  (occurrence override -> exercise default -> system default).
- check_scores: bound raw scores by the rubric in force.
- ensure_system_default_template / create_template / get_template
- resolve_template_for_occurrence
"""

from .resolver import check_scores, resolve_template, resolve_template_ids
from .service import (
    create_template,
    ensure_system_default_template,
    get_template,
    resolve_template_for_occurrence,
)
from .types import EvaluationCriterion, EvaluationTemplate, ResolvedTemplate

__all__ = [
    "EvaluationCriterion",
    "EvaluationTemplate",
    "ResolvedTemplate",
    "check_scores",
    "create_template",
    "ensure_system_default_template",
    "get_template",
    "resolve_template",
    "resolve_template_for_occurrence",
    "resolve_template_ids",
]
