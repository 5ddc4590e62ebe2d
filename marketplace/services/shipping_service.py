import logging
from decimal import Decimal

from marketplace.extensions import db
from marketplace.models.shipping import ShippingZone, ShippingRate
from marketplace.enums import ShippingRateType, AuditSeverity
from marketplace.exceptions import NoZoneFound, NoRateApplicable, NotFound, ValidationError
from marketplace.services.audit_service import AuditService
from marketplace.utils.helpers import is_blank, parse_enum

logger = logging.getLogger(__name__)

# Zone specificity, most specific first
STATE_MATCH = 3
COUNTRY_MATCH = 2
ANY_COUNTRY = 1


def _normalize_codes(codes):
    return [str(code).strip().upper() for code in (codes or []) if not is_blank(code)]


def _to_decimal(value):
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _within(value: Decimal, lower, upper) -> bool:
    """Half-open tier test [lower, upper); a missing bound is unbounded"""
    if lower is not None and value < lower:
        return False
    if upper is not None and value >= upper:
        return False
    return True


class ShippingRateResolver:
    """Picks the zone for a destination and filters its rates for a package.

    Works on any zone objects exposing ``countries``, ``states``, ``rates`` (each
    with ``bounds()``), ``is_active`` and ``is_default``; no database access
    happens here.
    """

    def __init__(self, zones):
        self.zones = [zone for zone in zones if zone.is_active is not False]

    @staticmethod
    def _specificity(zone, country: str, state: str):
        countries = _normalize_codes(zone.countries)
        states = _normalize_codes(zone.states)

        if countries and country not in countries:
            return None
        if states:
            if state not in states:
                return None
            return STATE_MATCH
        return COUNTRY_MATCH if countries else ANY_COUNTRY

    def match_zone(self, country: str, state: str = None):
        country = (country or "").strip().upper()
        state = (state or "").strip().upper() or None

        candidates = []
        for position, zone in enumerate(self.zones):
            score = self._specificity(zone, country, state)
            if score is not None:
                # Specific beats general, then a non-default zone beats the default
                candidates.append((-score, bool(zone.is_default), position, zone))

        if candidates:
            return min(candidates, key=lambda c: c[:3])[3]

        default_zone = next((zone for zone in self.zones if zone.is_default), None)
        if default_zone is None:
            raise NoZoneFound(f"No shipping zone covers {country}{'/' + state if state else ''}")
        return default_zone

    @staticmethod
    def rate_amount(rate, weight: Decimal, price: Decimal):
        """Amount charged by ``rate`` for the package, or None when its tier excludes it"""
        rate_type = ShippingRateType(rate.type)
        if rate_type == ShippingRateType.FREE:
            return Decimal("0")
        if rate_type == ShippingRateType.FLAT:
            return _to_decimal(rate.amount or 0)
        lower, upper = rate.bounds()
        key = weight if rate_type == ShippingRateType.WEIGHT_BASED else price
        if not _within(key, _to_decimal(lower), _to_decimal(upper)):
            return None
        return _to_decimal(rate.amount or 0)

    def resolve(self, destination: dict, package: dict) -> dict:
        zone = self.match_zone(destination.get("country"), destination.get("state"))
        weight = _to_decimal(package.get("weight") or 0)
        price = _to_decimal(package.get("price") or 0)

        rates = []
        for rate in zone.rates:
            amount = self.rate_amount(rate, weight, price)
            if amount is None:
                continue
            rates.append(
                {
                    "zone_id": zone.id,
                    "name": rate.name,
                    "type": ShippingRateType(rate.type).value,
                    "amount": amount,
                    "estimated_days": {"min": rate.min_days, "max": rate.max_days},
                }
            )

        if not rates:
            raise NoRateApplicable(f"No rate in zone '{zone.name}' applies to this package")

        logger.debug(f"Resolved {len(rates)} rate(s) in zone {zone.name}")
        return {
            "zone": {"id": zone.id, "name": zone.name, "is_default": bool(zone.is_default)},
            "rates": rates,
        }

    @staticmethod
    def cheapest(rates: list) -> dict:
        return min(rates, key=lambda rate: rate["amount"])


class ShippingService:
    @staticmethod
    def resolve(destination: dict, package: dict) -> dict:
        zones = ShippingZone.query.order_by(ShippingZone.created_at.asc()).all()
        return ShippingRateResolver(zones).resolve(destination, package)

    @staticmethod
    def get_zones():
        return ShippingZone.query.order_by(
            ShippingZone.is_default.desc(), ShippingZone.name.asc()
        ).all()

    @staticmethod
    def get_zone(zone_id: str) -> ShippingZone:
        zone = db.session.get(ShippingZone, zone_id)
        if not zone:
            raise NotFound("Shipping zone not found")
        return zone

    @staticmethod
    def _build_rate(position: int, data: dict) -> ShippingRate:
        rate_type = parse_enum(ShippingRateType, data.get("type", ShippingRateType.FLAT), "rate type")
        amount = _to_decimal(data.get("amount") or 0)
        name = data.get("name")

        if is_blank(name):
            raise ValidationError("Rate name is required")
        if amount < 0:
            raise ValidationError(f"Rate '{name}' amount must not be negative")
        if rate_type == ShippingRateType.FREE and amount != 0:
            raise ValidationError(f"Free rate '{name}' must have amount 0")

        min_days = data.get("min_days", 3)
        max_days = data.get("max_days", 7)
        if max_days < min_days:
            raise ValidationError(f"Rate '{name}' max days must be >= min days")

        bounds = {}
        if rate_type == ShippingRateType.WEIGHT_BASED:
            bounds = {"min_weight": data.get("min_weight"), "max_weight": data.get("max_weight")}
        elif rate_type == ShippingRateType.PRICE_BASED:
            bounds = {
                "min_order_value": data.get("min_order_value"),
                "max_order_value": data.get("max_order_value"),
            }
        lower, upper = (_to_decimal(v) for v in (list(bounds.values()) + [None, None])[:2])
        if lower is not None and upper is not None and upper <= lower:
            raise ValidationError(f"Rate '{name}' upper bound must exceed lower bound")

        return ShippingRate(
            position=position,
            name=name.strip(),
            type=rate_type,
            amount=amount,
            min_days=min_days,
            max_days=max_days,
            **bounds,
        )

    @staticmethod
    def _clear_other_defaults(zone_id: str = None):
        query = ShippingZone.query.filter(ShippingZone.is_default.is_(True))
        if zone_id:
            query = query.filter(ShippingZone.id != zone_id)
        query.update({"is_default": False}, synchronize_session=False)

    @staticmethod
    def create_zone(data: dict, actor_id: str = None) -> ShippingZone:
        if is_blank(data.get("name")):
            raise ValidationError("Zone name is required")

        zone = ShippingZone(
            name=data["name"].strip(),
            countries=_normalize_codes(data.get("countries")),
            states=_normalize_codes(data.get("states")),
            is_active=data.get("is_active", True),
            is_default=data.get("is_default", False),
        )
        zone.rates = [
            ShippingService._build_rate(i, rate) for i, rate in enumerate(data.get("rates") or [])
        ]

        try:
            if zone.is_default:
                ShippingService._clear_other_defaults()
            db.session.add(zone)
            db.session.flush()
            AuditService.log(
                "SHIPPING_ZONE_CREATED", "shipping_zone", zone.id,
                f"Shipping zone '{zone.name}' created", actor_id=actor_id,
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return zone

    @staticmethod
    def update_zone(zone_id: str, data: dict, actor_id: str = None) -> ShippingZone:
        zone = ShippingService.get_zone(zone_id)

        try:
            if "name" in data:
                if is_blank(data["name"]):
                    raise ValidationError("Zone name is required")
                zone.name = data["name"].strip()
            if "countries" in data:
                zone.countries = _normalize_codes(data["countries"])
            if "states" in data:
                zone.states = _normalize_codes(data["states"])
            if "is_active" in data:
                zone.is_active = data["is_active"]
            if "rates" in data:
                zone.rates = [
                    ShippingService._build_rate(i, rate) for i, rate in enumerate(data["rates"] or [])
                ]
            if data.get("is_default") is True:
                ShippingService._clear_other_defaults(zone.id)
                zone.is_default = True
            elif data.get("is_default") is False:
                zone.is_default = False

            AuditService.log(
                "SHIPPING_ZONE_UPDATED", "shipping_zone", zone.id,
                f"Shipping zone '{zone.name}' updated", actor_id=actor_id,
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return zone

    @staticmethod
    def delete_zone(zone_id: str, actor_id: str = None):
        zone = ShippingService.get_zone(zone_id)
        if zone.is_default:
            raise ValidationError("Cannot delete default zone")

        AuditService.log(
            "SHIPPING_ZONE_DELETED", "shipping_zone", zone.id,
            f"Shipping zone '{zone.name}' deleted", actor_id=actor_id,
            severity=AuditSeverity.WARNING,
        )
        db.session.delete(zone)
        db.session.commit()
