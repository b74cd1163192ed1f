"""Database routing between the application DB and the shared platform DB.

Users and platform privileges live in a database shared with the other
platform services; everything else belongs to this application.
"""

PLATFORM_APPS = {"accounts"}
PLATFORM_DB = "platform"
DEFAULT_DB = "default"


class PlatformRouter:
    """Send the ``accounts`` app to the ``platform`` alias."""

    def _db_for(self, model):
        if model._meta.app_label in PLATFORM_APPS:
            return PLATFORM_DB
        return DEFAULT_DB

    def db_for_read(self, model, **hints):
        return self._db_for(model)

    def db_for_write(self, model, **hints):
        return self._db_for(model)

    def allow_relation(self, obj1, obj2, **hints):
        return self._db_for(type(obj1)) == self._db_for(type(obj2))

    def allow_migrate(self, db, app_label, model_name=None, **hints):
        if app_label in PLATFORM_APPS:
            return db == PLATFORM_DB
        return db == DEFAULT_DB
