from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from marketplace.services.shipping_service import ShippingService
from marketplace.utils.decorators import role_required
from marketplace.utils.validators import validate_schema
from marketplace.schemas import ShippingZoneCreateSchema, ShippingZoneUpdateSchema
from marketplace.enums import UserRole

shipping_admin_bp = Blueprint("shipping", __name__)


@shipping_admin_bp.route("/zones", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_zones(current_user):
    zones = ShippingService.get_zones()
    return jsonify({"zones": [zone.to_dict(include_rates=True) for zone in zones]}), 200


@shipping_admin_bp.route("/zones", methods=["POST"])
@jwt_required()
@role_required(UserRole.ADMIN)
@validate_schema(ShippingZoneCreateSchema)
def create_zone(current_user):
    zone = ShippingService.create_zone(request.validated_data, actor_id=current_user.id)
    return jsonify({"message": "Shipping zone created", "zone": zone.to_dict(include_rates=True)}), 201


@shipping_admin_bp.route("/zones/<zone_id>", methods=["GET"])
@jwt_required()
@role_required(UserRole.ADMIN)
def get_zone(zone_id, current_user):
    zone = ShippingService.get_zone(zone_id)
    return jsonify({"zone": zone.to_dict(include_rates=True)}), 200


@shipping_admin_bp.route("/zones/<zone_id>", methods=["PUT"])
@jwt_required()
@role_required(UserRole.ADMIN)
@validate_schema(ShippingZoneUpdateSchema)
def update_zone(zone_id, current_user):
    zone = ShippingService.update_zone(zone_id, request.validated_data, actor_id=current_user.id)
    return jsonify({"message": "Shipping zone updated", "zone": zone.to_dict(include_rates=True)}), 200


@shipping_admin_bp.route("/zones/<zone_id>", methods=["DELETE"])
@jwt_required()
@role_required(UserRole.ADMIN)
def delete_zone(zone_id, current_user):
    ShippingService.delete_zone(zone_id, actor_id=current_user.id)
    return jsonify({"message": "Shipping zone deleted"}), 200
