from marketplace.routes.auth import auth_bp
from marketplace.routes.shipping import shipping_bp
from marketplace.routes.support import support_bp
from marketplace.routes.customer import customer_bp
from marketplace.routes.studio import studio_bp
from marketplace.routes.admin import admin_bp

API_PREFIX = "/api/v1"


def register_blueprints(app):
    """Register all blueprints"""
    app.register_blueprint(auth_bp, url_prefix=f"{API_PREFIX}/auth")
    app.register_blueprint(shipping_bp, url_prefix=f"{API_PREFIX}/shipping")
    app.register_blueprint(support_bp, url_prefix=f"{API_PREFIX}/support")
    app.register_blueprint(customer_bp, url_prefix=f"{API_PREFIX}/customer")
    app.register_blueprint(studio_bp, url_prefix=f"{API_PREFIX}/studio")
    app.register_blueprint(admin_bp, url_prefix=f"{API_PREFIX}/admin")
