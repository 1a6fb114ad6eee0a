"""
Response scoring: turns a raw answer into score / conformity fields.

Scale is 0..5 for every scored question type:

    sim_nao           yes → 5 (conforme), no → 0 (nao_conforme)
    escala            value 0..5 is the score
    multipla_escolha  selected / available options × 5
    texto             not scored (score_max 0, no conformity status)

Conformity thresholds for escala / multipla_escolha:
    score ≥ 4 → conforme, score ≥ 2 → parcialmente_conforme, else nao_conforme
"""

from dataclasses import dataclass

from grc.core.exceptions import ValidationError

MAX_SCORE = 5.0


@dataclass(frozen=True)
class ResponseScore:
    score_obtained: float
    score_max: float
    conformity_pct: float
    conformity_status: str | None


_UNSCORED = ResponseScore(0.0, 0.0, 0.0, None)


def _status_for(score: float) -> str:
    if score >= 4:
        return "conforme"
    if score >= 2:
        return "parcialmente_conforme"
    return "nao_conforme"


def score_response(question_type: str, answer: dict, options=None) -> ResponseScore:
    """Score one answer for a question of ``question_type``.

    ``answer`` holds the request fields (boolean_answer, numeric_answer,
    choice_answers, text_answer). A missing answer for the question's type
    scores as unscored rather than zero.
    """
    if question_type == "sim_nao":
        value = answer.get("boolean_answer")
        if value is None:
            return _UNSCORED
        if not isinstance(value, bool):
            raise ValidationError("boolean_answer must be true or false",
                                  details={"boolean_answer": "Must be a boolean."})
        score = MAX_SCORE if value else 0.0
        return ResponseScore(score, MAX_SCORE, 100.0 if value else 0.0,
                             "conforme" if value else "nao_conforme")

    if question_type == "escala":
        value = answer.get("numeric_answer")
        if value is None:
            return _UNSCORED
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= MAX_SCORE:
            raise ValidationError("numeric_answer must be a number between 0 and 5",
                                  details={"numeric_answer": "Must be between 0 and 5."})
        score = float(value)
        return ResponseScore(score, MAX_SCORE, score / MAX_SCORE * 100, _status_for(score))

    if question_type == "multipla_escolha":
        selected = answer.get("choice_answers")
        if not selected:
            return _UNSCORED
        if not isinstance(selected, list):
            raise ValidationError("choice_answers must be a list",
                                  details={"choice_answers": "Must be a list."})
        total_options = len(options or []) or 1
        score = min(len(selected) / total_options, 1.0) * MAX_SCORE
        return ResponseScore(score, MAX_SCORE, score / MAX_SCORE * 100, _status_for(score))

    return _UNSCORED
