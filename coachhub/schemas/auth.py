from marshmallow import fields, validate, pre_load

from coachhub.schemas import BaseSchema, StringList


def _blank_to_none(data):
    return {k: (None if v == '' else v) for k, v in data.items()}


class RegisterSchema(BaseSchema):
    name = fields.String(load_default='')
    email = fields.String(load_default='')
    password = fields.String(load_default='')
    type = fields.String(load_default='user', validate=validate.OneOf(['coach', 'user', 'athlete']))
    date_of_birth = fields.Date(allow_none=True, load_default=None)

    @pre_load
    def strip(self, data, **kwargs):
        data = _blank_to_none(dict(data))
        for key in ('name', 'email', 'password'):
            if data.get(key) is None:
                data[key] = ''
        if data.get('type') is None:
            data.pop('type', None)
        return data


class LoginSchema(BaseSchema):
    email = fields.String(required=True)
    password = fields.String(required=True)
    token = fields.String(allow_none=True, load_default=None)


class CoachProfileFieldsMixin:
    primary_specialty = fields.String(allow_none=True)
    specialties = StringList()
    experience_level = fields.String(allow_none=True)
    certifications = StringList()
    session_price = fields.Float(allow_none=True)
    hourly_rate = fields.Float(allow_none=True)
    hourly_currency = fields.String(allow_none=True, validate=validate.Length(equal=3))
    session_duration_minutes = fields.Integer(allow_none=True, validate=validate.Range(min=1))
    rgpd_laws_agreement = fields.Boolean(allow_none=True)


class SetupProfileSchema(CoachProfileFieldsMixin, BaseSchema):
    date_of_birth = fields.Date(allow_none=True)
    bio = fields.String(allow_none=True)
    objectives = fields.String(allow_none=True)
    goals = fields.String(allow_none=True)
    sports = fields.String(allow_none=True)
    location = fields.String(allow_none=True)

    @pre_load
    def strip(self, data, **kwargs):
        return _blank_to_none(dict(data))


class UpdateProfileSchema(SetupProfileSchema):
    name = fields.String(validate=validate.Length(min=2))
    phone_number = fields.String(allow_none=True)
    gender = fields.String(allow_none=True)
    address = fields.String(allow_none=True)


class ChangePasswordSchema(BaseSchema):
    old_password = fields.String(required=True)
    new_password = fields.String(required=True)


class EmailTokenSchema(BaseSchema):
    email = fields.Email(required=True)
    token = fields.String(required=True)


class ResetPasswordSchema(EmailTokenSchema):
    password = fields.String(required=True)
