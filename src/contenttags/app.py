"""Base Flask application class, used by tests or to be extended in real
applications."""
import logging
import logging.config
import sys
from importlib import resources
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import sqlalchemy as sa
import sqlalchemy.orm
import yaml
from flask import Flask

from contenttags.config import default_config
from contenttags.core import extensions
from contenttags.services import Service
from contenttags.services.tagging import tagging_service

logger = logging.getLogger(__name__)
db = extensions.db
__all__ = ["create_app", "Application", "ServiceManager"]


class ServiceManager:
    """Mixin that provides lifecycle (register/start/stop) support for
    services."""

    services: Dict[str, Service]

    def __init__(self) -> None:
        self.services = {}

    def start_services(self):
        for svc in self.services.values():
            svc.start()

    def stop_services(self):
        for svc in self.services.values():
            svc.stop()


class Application(ServiceManager, Flask):
    """Base application class.

    Extend it in your own app.
    """

    default_config = default_config

    def __init__(self, name: Optional[Any] = None, *args: Any, **kwargs: Any) -> None:
        name = name or __name__

        Flask.__init__(self, name, *args, **kwargs)
        ServiceManager.__init__(self)

    def setup(
        self,
        config: Optional[type],
        site_resolver: Optional[Callable[[], Optional[int]]] = None,
    ) -> None:
        self.configure(config)

        # At this point we have loaded all external config files.
        self.setup_logging()

        extensions.db.init_app(self)
        tagging_service.init_app(self, site_resolver=site_resolver)
        self.register_commands()

        # At this point all models should have been imported: time to configure
        # mappers, so that a misconfiguration fails here and not in the middle
        # of the first query.
        sa.orm.configure_mappers()

        if not self.testing:
            with self.app_context():
                self.start_services()

    def configure(self, config: Optional[type]) -> None:
        if config:
            self.config.from_object(config)

        if self.config["PRODUCTION"] and self.config["SECRET_KEY"] == "CHANGEME":
            logger.error("You must change the default secret config ('SECRET_KEY')")
            sys.exit()

    def setup_logging(self) -> None:
        # Force flask to create application logger before logging
        # configuration; else, flask will overwrite our settings
        self.logger  # noqa

        log_level = self.config.get("LOG_LEVEL")
        if log_level:
            self.logger.setLevel(log_level)

        logging_file = self.config.get("LOGGING_CONFIG_FILE")
        if logging_file:
            logging_file = (Path(self.instance_path) / logging_file).resolve()
            if logging_file.suffix == ".ini":
                # old standard 'ini' file config
                logging.config.fileConfig(
                    str(logging_file), disable_existing_loggers=False
                )
                return
            logging_cfg = yaml.safe_load(logging_file.read_text())
        else:
            default_file = resources.files("contenttags.core") / "default_logging.yml"
            logging_cfg = yaml.safe_load(default_file.read_text())

        logging_cfg.setdefault("version", 1)
        logging_cfg.setdefault("disable_existing_loggers", False)
        logging.config.dictConfig(logging_cfg)

    def register_commands(self) -> None:
        from contenttags.cli import register_commands

        register_commands(self)


def create_app(
    config: Optional[type] = None,
    app_class: type = Application,
    site_resolver: Optional[Callable[[], Optional[int]]] = None,
    **kw: Any,
) -> Application:
    app = app_class(**kw)
    app.setup(config=config, site_resolver=site_resolver)
    return app
