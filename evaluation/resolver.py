from __future__ import annotations

"""Evaluation-template resolution (pure, state-free).

Strict order for one lesson exercise occurrence:
  1) the occurrence's own rubric override
  2) the underlying exercise's default rubric
  3) the single system-wide default rubric

Every fallback is explicit. A referenced-but-missing template is a
NotFoundError; a missing system default is a ConfigurationError.
"""

from typing import Any, Callable, Dict, Mapping, Optional

from errors import (
    SCORE_OUT_OF_RANGE,
    SYSTEM_DEFAULT_TEMPLATE_MISSING,
    TEMPLATE_NOT_FOUND,
    ConfigurationError,
    NotFoundError,
    ValidationError,
)

from .types import EvaluationTemplate, ResolvedTemplate

TemplateLookup = Callable[[str], Optional[EvaluationTemplate]]
DefaultLookup = Callable[[], Optional[EvaluationTemplate]]


def _require(get_template: TemplateLookup, template_id: str) -> EvaluationTemplate:
    tpl = get_template(str(template_id))
    if tpl is None:
        raise NotFoundError.for_entity("evaluation_template", template_id, code=TEMPLATE_NOT_FOUND)
    return tpl


def resolve_template_ids(
    *,
    override_template_id: Optional[str],
    exercise_default_template_id: Optional[str],
    get_template: TemplateLookup,
    get_system_default: DefaultLookup,
) -> ResolvedTemplate:
    if override_template_id:
        return ResolvedTemplate(_require(get_template, override_template_id), "OVERRIDE")
    if exercise_default_template_id:
        return ResolvedTemplate(_require(get_template, exercise_default_template_id), "EXERCISE_DEFAULT")
    default = get_system_default()
    if default is None:
        raise ConfigurationError(
            SYSTEM_DEFAULT_TEMPLATE_MISSING,
            "No system default evaluation template is configured",
            {"kind": "evaluation_template", "id": None},
        )
    return ResolvedTemplate(default, "SYSTEM_DEFAULT")


def resolve_template(
    occurrence: Any,
    *,
    get_template: TemplateLookup,
    get_system_default: DefaultLookup,
) -> ResolvedTemplate:
    """Resolve the rubric for a lesson exercise occurrence.

    ``occurrence`` needs ``evaluation_template_id`` and ``exercise`` (an Exercise
    or None) attributes, i.e. a ``lessons.types.LessonExercise``.
    """
    exercise = getattr(occurrence, "exercise", None)
    return resolve_template_ids(
        override_template_id=getattr(occurrence, "evaluation_template_id", None),
        exercise_default_template_id=getattr(exercise, "default_template_id", None) if exercise is not None else None,
        get_template=get_template,
        get_system_default=get_system_default,
    )


def check_scores(template: EvaluationTemplate, scores: Mapping[str, Any]) -> Dict[str, int]:
    """Validate raw ``{criterion: score}`` against the rubric in force.

    Scores must be non-negative integers. Criteria the rubric declares are
    bounded by their max score; other keys are stored as given (the rubric
    does not constrain the shape of the mapping).
    """
    out: Dict[str, int] = {}
    for raw_name, raw_score in (scores or {}).items():
        name = str(raw_name).strip()
        if not name:
            raise ValidationError(SCORE_OUT_OF_RANGE, "Criterion name must not be empty", {"criterion": raw_name})
        if isinstance(raw_score, bool) or not isinstance(raw_score, int):
            raise ValidationError(
                SCORE_OUT_OF_RANGE,
                "Scores must be integers",
                {"criterion": name, "score": raw_score},
            )
        criterion = template.criterion(name)
        upper = int(criterion.max_score) if criterion is not None else None
        if raw_score < 0 or (upper is not None and raw_score > upper):
            raise ValidationError(
                SCORE_OUT_OF_RANGE,
                f"Score for {name!r} is out of range",
                {"criterion": name, "score": raw_score, "max_score": upper, "template_id": template.template_id},
            )
        out[name] = int(raw_score)
    return out
