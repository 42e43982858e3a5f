"""Exceptions raised synchronously by gsql before any driver work starts."""


class GsqlError(Exception):
    """Local fatal condition: bad argument, invalid prepared index, unsupported parameter."""


class GsqlConnectionError(GsqlError):
    """The database connection could not be opened or was lost."""
