"""Exceptions raised by epub-audit."""


class AuditError(Exception):
    """Base class for audit failures."""


class ArchiveError(AuditError):
    """The uploaded bytes could not be opened as a zip archive."""


class ImageProbeError(AuditError):
    """Image dimensions could not be read from a candidate's bytes."""
