from marshmallow import fields, validate, validates, ValidationError

from coachhub.models.booking import BOOKING_STATUSES
from coachhub.schemas import BaseSchema
from coachhub.utils.dates import parse_appointment


class LooseDateTime(fields.Field):
    """ISO datetimes, also accepting ``2025-1-5 10:00`` style input. Loads naive UTC."""

    default_error_messages = {'invalid': 'Invalid date format'}

    def _deserialize(self, value, attr, data, **kwargs):
        parsed = parse_appointment(value)
        if parsed is None:
            raise self.make_error('invalid')
        return parsed


class UpdateBookingSchema(BaseSchema):
    title = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)
    location = fields.String(allow_none=True)
    google_map_link = fields.String(allow_none=True)
    appointment_date = LooseDateTime()
    session_time = LooseDateTime(allow_none=True)
    duration_minutes = fields.Integer(validate=validate.Range(min=1))
    session_price = fields.Float(validate=validate.Range(min=0))
    status = fields.String(validate=validate.OneOf(BOOKING_STATUSES))


class SessionPackageSchema(BaseSchema):
    title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    description = fields.String(allow_none=True)
    number_of_sessions = fields.Integer(required=True, validate=validate.Range(min=1))
    days_validity = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    total_price = fields.Float(required=True, validate=validate.Range(min=0))
    currency = fields.String(load_default="USD")

    @validates('currency')
    def validate_currency(self, value, **kwargs):
        if value and len(value) != 3:
            raise ValidationError("Currency must be a 3-letter code")
