from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity, create_access_token
from marketplace.services.auth_service import AuthService
from marketplace.schemas import UserRegisterSchema, UserLoginSchema
from marketplace.utils.validators import validate_schema

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
@validate_schema(UserRegisterSchema)
def register():
    """Self-service signup for customers and studios"""
    user = AuthService.register_user(**request.validated_data)
    return jsonify({"message": "Account created", "user": user.to_dict()}), 201


@auth_bp.route("/login", methods=["POST"])
@validate_schema(UserLoginSchema)
def login():
    return jsonify(AuthService.login_user(**request.validated_data)), 200


@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    """Trade a refresh token for a new access token"""
    return jsonify({"access_token": create_access_token(identity=get_jwt_identity())}), 200


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def get_me():
    user = AuthService.get_user_by_id(get_jwt_identity())
    return jsonify({"user": user.to_dict()}), 200
