"""Errors raised by the database lifecycle layer. Messages are meant for end users."""


class DatabaseError(Exception):
    pass


class DatabaseInitError(DatabaseError):
    """The embedded engine could not be brought up. Fatal; the app must restart."""
    pass


class ImportFailedError(DatabaseError):
    """Supplied bytes are not a usable database. The live database is unchanged."""
    pass


class DatabaseNotReadyError(DatabaseError):
    """A repository was used before initialize() produced a handle."""
    pass


class DatabaseBusyError(DatabaseError):
    """An import is replacing the database; try again once it finishes."""
    pass
