import logging
from typing import TYPE_CHECKING, Any, Optional

from flask import current_app

from contenttags.core.util import fqcn

if TYPE_CHECKING:
    from contenttags.app import Application


class ServiceNotRegistered(Exception):
    """The service has not been installed on the current application."""


class ServiceState:
    """Per application state of a service, kept in `app.extensions`."""

    #: the :class:`Service` owning this state
    service: "Service"

    running = False

    def __init__(self, service: "Service", running: bool = False) -> None:
        self.service = service
        self.running = running
        self.logger = logging.getLogger(fqcn(self.__class__))

    def __repr__(self) -> str:
        status = "running" if self.running else "stopped"
        return f"<{self.__class__.__name__} {self.service.name!r} {status}>"


class Service:
    """A Flask extension with a name and a start / stop lifecycle.

    One instance serves any number of applications: everything specific to
    an application lives in its :attr:`AppStateClass` instance.
    """

    #: class of the per application state
    AppStateClass = ServiceState

    #: key in `app.extensions` and `app.services`
    name = ""

    def __init__(self, app: Optional[Any] = None) -> None:
        if not self.name:
            raise ValueError(f"Service {fqcn(self.__class__)} has no name")

        self.logger = logging.getLogger(fqcn(self.__class__))
        if app:
            self.init_app(app)

    def init_app(self, app: "Application") -> None:
        app.extensions[self.name] = self.AppStateClass(self)
        app.services[self.name] = self

    def start(self, ignore_state: bool = False) -> None:
        self.logger.debug("Starting service %r", self.name)
        self._set_running(True, ignore_state)

    def stop(self, ignore_state: bool = False) -> None:
        self.logger.debug("Stopping service %r", self.name)
        self._set_running(False, ignore_state)

    def _set_running(self, running: bool, ignore_state: bool = False) -> None:
        state = self.app_state
        if not ignore_state and state.running == running:
            status = "running" if running else "stopped"
            raise RuntimeError(f"Service {self.name!r} is already {status}")
        state.running = running

    @property
    def app_state(self) -> Any:
        """State of this service on the current application.

        :raise:ServiceNotRegistered if the service is not installed on the
            current application.
        """
        try:
            return current_app.extensions[self.name]
        except KeyError:
            raise ServiceNotRegistered(self.name)

    @property
    def running(self) -> bool:
        """`False` outside an application context, on an application where
        the service is not installed, or when it is stopped."""
        try:
            return self.app_state.running
        except (RuntimeError, ServiceNotRegistered):
            # RuntimeError: no application context
            return False
