from marshmallow import fields, validate, post_load

from coachhub.schemas import BaseSchema
from coachhub.utils.dates import to_naive_utc


class MeasureField(fields.Field):
    """Goal values are stored as text but usually arrive as numbers."""

    default_error_messages = {'invalid': 'Not a valid value.'}

    def _deserialize(self, value, attr, data, **kwargs):
        if value is None or value == '':
            return None
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise self.make_error('invalid')
        return str(value).strip()


class GoalSchema(BaseSchema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=150))
    current_value = MeasureField(allow_none=True)
    target_value = MeasureField(allow_none=True)
    target_date = fields.Date(allow_none=True)
    frequency_per_week = fields.Integer(allow_none=True, validate=validate.Range(min=0, max=21))
    motivation = fields.String(allow_none=True)
    coach_id = fields.Integer(allow_none=True)


class GoalProgressSchema(BaseSchema):
    previous_weight = fields.Float(allow_none=True)
    current_weight = fields.Float(allow_none=True)
    training_duration = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    calories_burned = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    calories_gained = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    sets_per_session = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    recorded_at = fields.DateTime(allow_none=True)
    notes = fields.String(allow_none=True)

    @post_load
    def naive_recorded_at(self, data, **kwargs):
        if data.get("recorded_at") is not None:
            data["recorded_at"] = to_naive_utc(data["recorded_at"])
        return data
