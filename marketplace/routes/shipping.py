from flask import Blueprint, request, jsonify
from marketplace.services.shipping_service import ShippingService, ShippingRateResolver
from marketplace.schemas import ShippingResolveSchema
from marketplace.utils.validators import validate_schema

shipping_bp = Blueprint("shipping", __name__)


@shipping_bp.route("/resolve", methods=["POST"])
@validate_schema(ShippingResolveSchema)
def resolve():
    """Rates available for a destination and package, cheapest flagged"""
    data = request.validated_data
    result = ShippingService.resolve(data["destination"], data["package"])
    cheapest = ShippingRateResolver.cheapest(result["rates"])

    rates = [dict(rate, amount=float(rate["amount"])) for rate in result["rates"]]
    return (
        jsonify(
            {
                "zone": result["zone"],
                "rates": rates,
                "cheapest": rates[result["rates"].index(cheapest)],
            }
        ),
        200,
    )
