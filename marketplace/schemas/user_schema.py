from marshmallow import Schema, fields, validate
from marketplace.enums import UserRole


class UserRegisterSchema(Schema):
    email = fields.Email(required=True)
    username = fields.Str(required=True, validate=validate.Length(min=3, max=100))
    password = fields.Str(required=True, validate=validate.Length(min=6))
    full_name = fields.Str(validate=validate.Length(max=255))
    phone = fields.Str(validate=validate.Length(max=20))
    role = fields.Str(
        required=True,
        validate=validate.OneOf([UserRole.CUSTOMER.value, UserRole.STUDIO.value]),
    )


class UserLoginSchema(Schema):
    username = fields.Str(required=True)
    password = fields.Str(required=True)
