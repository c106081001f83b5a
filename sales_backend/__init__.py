"""Flask application factory."""
from flask import Flask
from sales_backend.database import init_db
import logging


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # app.logger is the parent of every module logger in the package
    app.logger.setLevel(getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO))

    # Initialize Sentry for error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=app.config.get('ENV', 'production'),
        )

    # Initialize database
    init_db(app)

    # Initialize domain event publisher
    from sales_backend.services.event_publisher import init_events
    init_events(app)

    # Register CLI commands
    from sales_backend.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"Sales backend started (env={app.config.get('ENV')})")

    return app
