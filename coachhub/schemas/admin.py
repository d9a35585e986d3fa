from marshmallow import fields, validate, validates_schema, ValidationError

from coachhub.models.booking import BOOKING_STATUSES
from coachhub.schemas import BaseSchema, StringList
from coachhub.schemas.bookings import LooseDateTime

RECIPIENT_TYPES = ('all', 'coaches', 'athletes', 'specific')
CONTENT_TYPES = ('coach_profile', 'user')


class AdminBookingSchema(BaseSchema):
    title = fields.String(allow_none=True)
    user_id = fields.Integer(required=True)
    coach_id = fields.Integer(required=True)
    coach_profile_id = fields.Integer(allow_none=True)
    session_package_id = fields.Integer(allow_none=True)
    appointment_date = LooseDateTime(allow_none=True)
    session_time = LooseDateTime(allow_none=True)
    duration_minutes = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    location = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    notes = fields.String(allow_none=True)
    status = fields.String(load_default='PENDING', validate=validate.OneOf(BOOKING_STATUSES))


class BulkNotificationSchema(BaseSchema):
    notification_title = fields.String(required=True, validate=validate.Length(min=1, max=200))
    message_content = fields.String(required=True, validate=validate.Length(min=1))
    recipient_type = fields.String(required=True, validate=validate.OneOf(RECIPIENT_TYPES))
    recipient_ids = fields.List(fields.Integer(), load_default=list)

    @validates_schema
    def validate_recipients(self, data, **kwargs):
        if data.get('recipient_type') == 'specific' and not data.get('recipient_ids'):
            raise ValidationError(
                'Recipient IDs are required when recipient type is specific',
                field_name='recipient_ids',
            )


class ContentActionSchema(BaseSchema):
    id = fields.Integer(required=True)
    type = fields.String(
        load_default='coach_profile',
        validate=validate.OneOf(CONTENT_TYPES, error='Invalid type. Use "coach_profile" or "user"'),
    )
    reason = fields.String(allow_none=True)


class AdminUserUpdateSchema(BaseSchema):
    name = fields.String(validate=validate.Length(min=1, max=150))
    email = fields.Email()
    phone_number = fields.String(allow_none=True)
    location = fields.String(allow_none=True)
    bio = fields.String(allow_none=True)
    status = fields.String(validate=validate.OneOf(('active', 'blocked')))


class SubscriptionPlanSchema(BaseSchema):
    plan_id = fields.Integer(allow_none=True)
    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    description = fields.String(allow_none=True)
    price = fields.Float(required=True, validate=validate.Range(min=0))
    currency = fields.String(load_default='USD', validate=validate.Length(equal=3))
    interval = fields.String(load_default='month', validate=validate.OneOf(('month', 'year')))
    features = StringList(load_default=list)
    sort_order = fields.Integer(load_default=0)
    is_active = fields.Boolean(load_default=True)


class MarketplaceProductSchema(BaseSchema):
    name = fields.String(data_key='productName', required=True, validate=validate.Length(min=1, max=200))
    category = fields.String(data_key='categoryId', allow_none=True)
    price = fields.Float(allow_none=True, validate=validate.Range(min=0))
    stock_quantity = fields.Integer(data_key='stockQuantity', allow_none=True, validate=validate.Range(min=0))
    brand_seller = fields.String(data_key='brandSeller', allow_none=True)
    discount = fields.Float(allow_none=True, validate=validate.Range(min=0))
    description = fields.String(allow_none=True)
    is_active = fields.Boolean(data_key='isActive')
