"""
Base classes and utilities shared by all acfield subpackages
"""

class ACFieldException(Exception):
    """
    the base class for all exceptions raised by the acfield package
    """
    pass

class SystemInfoMixin(object):
    """
    A mixin that provides a standard way of identifying the system (and
    subsystem) that a class belongs to, primarily for use in messages and
    logger names.
    """

    def __init__(self, sysname, sysabbrev, subsysname, subsysabbrev, version):
        self._sysname = sysname
        self._sysabbrev = sysabbrev
        self._subsysname = subsysname
        self._subsysabbrev = subsysabbrev
        self._sysversion = version

    @property
    def system_name(self):
        return self._sysname

    @property
    def system_abbrev(self):
        return self._sysabbrev

    @property
    def subsystem_name(self):
        return self._subsysname

    @property
    def subsystem_abbrev(self):
        return self._subsysabbrev

    @property
    def system_version(self):
        return self._sysversion

    def getSysLogger(self):
        """
        return the default logger for this subsystem
        """
        import logging
        out = logging.getLogger(self.system_abbrev)
        if self.subsystem_abbrev:
            out = out.getChild(self.subsystem_abbrev)
        return out
