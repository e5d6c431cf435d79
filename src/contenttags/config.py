from typing import Any, Dict

from flask import Flask
from werkzeug.datastructures import ImmutableDict


class DefaultConfig:
    # Seriously: this need to be changed in production
    SECRET_KEY = "CHANGEME"

    # Need to be explicitly defined in production configs
    PRODUCTION = False

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging: level of the application logger, and logging configuration
    # file (.yml or .ini) relative to the instance folder.
    LOG_LEVEL = None
    LOGGING_CONFIG_FILE = None

    # Tags
    TAGS_SITE_SCOPED = False
    TAGS_SITE_RESOLVER = None
    TAGS_CLOUD_WEIGHTING = "band"  # or "size"
    TAGS_CLOUD_BANDS = 6
    TAGS_CLOUD_THRESHOLD = 0
    TAGS_CLOUD_BIGGEST = 1.0
    TAGS_CLOUD_SMALLEST = 0.4
    TAGS_POPULAR_LIMIT = 10


default_config = dict(Flask.default_config)  # type: Dict[str, Any]
default_config.update(
    (k, v) for k, v in vars(DefaultConfig).items() if not k.startswith("_")
)
default_config = ImmutableDict(default_config)
