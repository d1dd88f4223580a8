from marshmallow import Schema, fields, pre_load, validates, ValidationError


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class RegisterSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    first_name = fields.String(data_key="firstName", load_default="", allow_none=True)
    last_name = fields.String(data_key="lastName", load_default="", allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 8:
            raise ValidationError("Password must be at least 8 characters long.")


class LoginSchema(Schema):
    email = fields.String()
    password = fields.String()

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class RefreshSchema(Schema):
    access_token = fields.String(data_key="accessToken", required=True)
    refresh_token = fields.String(data_key="refreshToken", required=True)


class JwtResponseSchema(Schema):
    access_token = fields.String(data_key="accessToken")
    refresh_token = fields.String(data_key="refreshToken")
    refresh_token_expiry = fields.DateTime(data_key="refreshTokenExpiry")
    previous_refresh_token = fields.String(data_key="previousRefreshToken", allow_none=True)
    previous_refresh_token_expiry = fields.DateTime(data_key="previousRefreshTokenExpiry", allow_none=True)
    first_name = fields.String(data_key="firstName")
    last_name = fields.String(data_key="lastName")


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    email = fields.String(allow_none=False)
    first_name = fields.String(data_key="firstName", allow_none=True)
    last_name = fields.String(data_key="lastName", allow_none=True)
    roles = fields.List(fields.String())
