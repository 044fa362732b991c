from marshmallow import Schema, fields, pre_load, validate, validates, ValidationError

from utils.security import ROLES


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class RegisterSchema(Schema):
    email = fields.Email(required=True)
    username = fields.String(required=True, validate=validate.Length(min=3, max=64))
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            if isinstance(data.get("username"), str):
                data["username"] = data["username"].strip()
        return data

    @validates("username")
    def validate_username(self, value, **kwargs):
        if "@" in value:
            raise ValidationError("Username must not contain '@'.")

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class LoginSchema(Schema):
    # email or username
    login = fields.String(required=True, validate=validate.Length(min=1))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class ChangePasswordSchema(Schema):
    current_password = fields.String(required=True, data_key="currentPassword")
    new_password = fields.String(required=True, data_key="newPassword")

    @validates("new_password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class ChangeRoleSchema(Schema):
    role = fields.String(required=True, validate=validate.OneOf(ROLES))


class UserOutSchema(Schema):
    id = fields.Integer()
    email = fields.String()
    username = fields.String()
    role = fields.String()


class UserListOutSchema(Schema):
    id = fields.Integer()
    email = fields.String()
    username = fields.String()
    role = fields.String()
    verified = fields.Boolean(attribute="email_verified")
    created_at = fields.DateTime(data_key="createdAt")
    profile = fields.Method("get_profile")

    def get_profile(self, obj):
        profile = obj.profile
        return {
            "firstName": profile.first_name if profile else "",
            "lastName": profile.last_name if profile else "",
        }
