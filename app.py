"""
Gradebook Export service
Main Flask application entry point
"""

import logging
import os

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect
from config import Config
from database import db, init_db
from services.export_registry import ExportRegistry

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))

def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s [%(name)s] %(message)s')
    app.logger.setLevel(level)

def create_app(config_class=Config):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config.setdefault('PROJECT_ROOT', PROJECT_ROOT)

    configure_logging(app)

    # Initialize extensions with app
    db.init_app(app)
    csrf = CSRFProtect(app)

    app.extensions['export_registry'] = ExportRegistry(
        max_entries=app.config['EXPORT_REGISTRY_MAX_ENTRIES'],
        ttl_seconds=app.config['EXPORT_TTL_SECONDS'],
    )

    # Register blueprints; the JSON API is called from scripts and the SPA
    from routes.export import export_bp

    csrf.exempt(export_bp)
    app.register_blueprint(export_bp, url_prefix='/api')

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({'success': False, 'message': 'payload too large'}), 413

    # Initialize database
    init_db(app)

    return app

if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=8000, debug=True, use_reloader=False)
