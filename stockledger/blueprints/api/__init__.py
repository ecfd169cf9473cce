from flask import Blueprint

stock_api_bp = Blueprint('stock_api', __name__)

# Import routes to register them with the blueprint
from . import stock_routes  # noqa: E402,F401
