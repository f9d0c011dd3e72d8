"""Exceptions raised by knslogs."""


class KnslogsError(Exception):
    """Base class for knslogs errors."""


class SearchArgumentError(KnslogsError):
    """Passthrough search arguments or the search pattern are invalid."""


class ClusterConfigError(KnslogsError):
    """No usable cluster configuration could be loaded."""
