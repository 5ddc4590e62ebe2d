from flask import Blueprint
from .order_routes import order_studio_bp
from .return_routes import return_studio_bp
from .review_routes import review_studio_bp
from .kyc_routes import kyc_studio_bp

studio_bp = Blueprint("studio", __name__, url_prefix="/studio")

studio_bp.register_blueprint(order_studio_bp, url_prefix="/orders")
studio_bp.register_blueprint(return_studio_bp, url_prefix="/returns")
studio_bp.register_blueprint(review_studio_bp, url_prefix="/reviews")
studio_bp.register_blueprint(kyc_studio_bp, url_prefix="/kyc")
