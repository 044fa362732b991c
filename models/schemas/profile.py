from marshmallow import Schema, fields, validate


class ProfileUpdateSchema(Schema):
    first_name = fields.String(load_default="", data_key="firstName", validate=validate.Length(max=128))
    last_name = fields.String(load_default="", data_key="lastName", validate=validate.Length(max=128))
    bio = fields.String(load_default="")
    avatar_url = fields.String(load_default="", data_key="avatarURL", validate=validate.Length(max=512))


class ProfileOutSchema(Schema):
    first_name = fields.Function(lambda p: p.first_name or "", data_key="firstName")
    last_name = fields.Function(lambda p: p.last_name or "", data_key="lastName")
    bio = fields.Function(lambda p: p.bio or "")
    avatar_url = fields.Function(lambda p: p.avatar_url or "", data_key="avatarURL")
