""""""
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import DatabaseError

from contenttags.app import Application
from contenttags.services import get_service

__all__ = ("stop_all_services", "ensure_services_started", "cleanup_db")


def cleanup_db(db: SQLAlchemy) -> None:
    """Drop all the tables, in a way that doesn't raise integrity errors."""
    for table in reversed(db.metadata.sorted_tables):
        try:
            db.session.execute(table.delete())
        except DatabaseError:
            db.session.rollback()
    db.session.commit()
    db.drop_all()


def ensure_services_started(services):
    for service_name in services:
        service = get_service(service_name)
        if not service.running:
            service.start()


def stop_all_services(app: Application) -> None:
    for service in app.services.values():
        if service.running:
            service.stop()
