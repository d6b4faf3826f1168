"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from account_api.core.config import BaseConfig, get_config
from account_api.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config class, import path or object; defaults to the class
        selected by ``APP_ENV``.
    :raises RuntimeError: If a production config still holds placeholder secrets.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    config_obj = get_config() if config is None else config
    app.config.from_object(config_obj)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    validate = getattr(config_obj, "validate", None)
    if callable(validate):
        validate(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from account_api.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from account_api.core import cors

    cors.init_app(app)

    from account_api.api import init_app as init_api

    init_api(app)

    from account_api.core import errors

    errors.init_app(app)

    from account_api import cli as app_cli

    app_cli.init_app(app)

    return app
