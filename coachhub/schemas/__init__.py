import json

from marshmallow import EXCLUDE, fields

from coachhub.extensions import ma


class StringList(fields.Field):
    """A list of strings, also accepted as a JSON array or comma separated text (multipart forms)."""

    def _deserialize(self, value, attr, data, **kwargs):
        if value is None or value == '':
            return []
        if isinstance(value, str):
            text = value.strip()
            if text.startswith('['):
                try:
                    value = json.loads(text)
                except ValueError:
                    raise self.make_error('invalid')
            else:
                value = text.split(',')
        if not isinstance(value, (list, tuple)):
            raise self.make_error('invalid')
        return [str(item).strip() for item in value if str(item).strip()]

    default_error_messages = {'invalid': 'Not a valid list of strings.'}


class BaseSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE
