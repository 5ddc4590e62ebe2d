from flask import Blueprint
from .order_routes import order_admin_bp
from .shipping_routes import shipping_admin_bp
from .return_routes import return_admin_bp
from .support_routes import support_admin_bp
from .review_routes import review_admin_bp
from .kyc_routes import kyc_admin_bp
from .audit_routes import audit_admin_bp

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

admin_bp.register_blueprint(order_admin_bp, url_prefix="/orders")
admin_bp.register_blueprint(shipping_admin_bp, url_prefix="/shipping")
admin_bp.register_blueprint(return_admin_bp, url_prefix="/returns")
admin_bp.register_blueprint(support_admin_bp, url_prefix="/support")
admin_bp.register_blueprint(review_admin_bp, url_prefix="/reviews")
admin_bp.register_blueprint(kyc_admin_bp, url_prefix="/kyc")
admin_bp.register_blueprint(audit_admin_bp, url_prefix="/audit-logs")
