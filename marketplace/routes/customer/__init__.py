from flask import Blueprint
from .order_routes import order_bp
from .return_routes import return_bp
from .review_routes import review_bp

customer_bp = Blueprint("customer", __name__, url_prefix="/customer")

customer_bp.register_blueprint(order_bp, url_prefix="/orders")
customer_bp.register_blueprint(return_bp, url_prefix="/returns")
customer_bp.register_blueprint(review_bp, url_prefix="/reviews")
