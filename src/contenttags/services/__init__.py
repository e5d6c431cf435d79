"""
Modules that provide services. They are implemented as
Flask extensions (see: https://flask.palletsprojects.com/extensiondev/ )

"""
from flask import current_app

from .base import Service, ServiceNotRegistered, ServiceState

__all__ = ["Service", "ServiceState", "ServiceNotRegistered", "get_service"]


def get_service(service):
    return current_app.services.get(service)
