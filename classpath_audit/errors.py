"""Exception types raised by the classpath audit."""


class ClasspathAuditError(Exception):
    """Base class for all audit errors."""


class RedundantClassPathError(ClasspathAuditError):
    """Raised when the same class file is offered by more than one source.

    Carries no message; inspect ``ClassCollector.get_redundant()`` for details.
    """


class ClassFormatError(ClasspathAuditError):
    """Raised when a byte buffer can not be defined as a class."""


class ClassNotFoundError(ClasspathAuditError):
    """Raised when no loader in the chain can produce a class."""


class EntryReadError(ClasspathAuditError):
    """Raised when the bytes of an entry can not be read from its source."""


class EntryNotFoundError(EntryReadError):
    """Raised when a source does not contain the requested entry."""
