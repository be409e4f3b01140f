import os
import logging
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from dotenv import load_dotenv

from .config import DevConfig, ProdConfig, TestConfig

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()

CONFIGS = {
    'development': DevConfig,
    'production': ProdConfig,
    'testing': TestConfig,
}


def create_app(config_name: str | None = None) -> Flask:
    """Application factory with environment based configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)

    # Pick configuration
    env = config_name or os.getenv('ENV') or os.getenv('FLASK_ENV') or 'production'
    app.config.from_object(CONFIGS.get(env, ProdConfig))

    # Initialise logging
    logging.basicConfig(level=logging.DEBUG if app.debug else logging.INFO)

    db.init_app(app)
    migrate.init_app(app, db)

    # Ensure models loaded so tables can be created
    from detailquote import models  # noqa
    with app.app_context():
        db.create_all()

    from detailquote.notifications.mailer import ResendMailer
    app.extensions['quote_mailer'] = ResendMailer(
        api_key=app.config['RESEND_API_KEY'],
        sender=app.config['EMAIL_FROM'],
        timeout=app.config['MAIL_TIMEOUT'],
    )

    @app.route('/')
    def index():
        return jsonify(name='detailquote', status='ok')

    from detailquote.errors import register_error_handlers
    register_error_handlers(app)

    from detailquote.business.routes import bp as business_bp
    from detailquote.pricing.routes import bp as pricing_bp
    from detailquote.quotes.routes import bp as quotes_bp
    from detailquote.public.routes import bp as public_bp
    from detailquote.cli import pricing_cli

    app.register_blueprint(business_bp, url_prefix='/api/business')
    app.register_blueprint(pricing_bp, url_prefix='/api/pricing')
    app.register_blueprint(quotes_bp, url_prefix='/api/quotes')
    app.register_blueprint(public_bp, url_prefix='/q')
    app.cli.add_command(pricing_cli)

    return app
