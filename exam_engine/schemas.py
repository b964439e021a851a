"""
Request Schemas
One request type per operation; field aliases are reconciled here and
nowhere else.
"""
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, PositiveInt, ValidationError

from exam_engine.errors import InvalidAnswer


def _error_summary(exc):
    return [
        {'loc': [str(part) for part in error['loc']], 'msg': error['msg']}
        for error in exc.errors()
    ]


class AnswerEntry(BaseModel):
    question_id: PositiveInt
    # Missing or null clears the stored selection
    choice_id: Optional[PositiveInt] = Field(
        default=None,
        validation_alias=AliasChoices('choice_id', 'selected_choice_id'),
    )


class SaveAnswersRequest(BaseModel):
    answers: List[AnswerEntry]

    @classmethod
    def parse_payload(cls, payload):
        try:
            return cls.model_validate(payload if payload is not None else {})
        except ValidationError as exc:
            raise InvalidAnswer(
                'Answers must be a list of {question_id, choice_id} entries.',
                code='invalid_answers',
                errors=_error_summary(exc),
            ) from exc


class UserScopeQuery(BaseModel):
    """Optional user filter for exam-level attempt queries"""
    user_id: Optional[PositiveInt] = None

    @classmethod
    def parse_args(cls, args):
        try:
            return cls.model_validate(args.to_dict())
        except ValidationError as exc:
            raise InvalidAnswer('user_id must be a positive integer.', code='invalid_param',
                                errors=_error_summary(exc)) from exc


class PaperQuery(BaseModel):
    context: Literal['view', 'edit'] = 'view'

    @classmethod
    def parse_args(cls, args):
        try:
            return cls.model_validate(args.to_dict())
        except ValidationError as exc:
            raise InvalidAnswer('context must be "view" or "edit".', code='invalid_param',
                                errors=_error_summary(exc)) from exc

    @property
    def reveal_answers(self):
        return self.context == 'edit'
