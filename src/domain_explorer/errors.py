"""Exception types for the domain explorer."""


class ExplorerError(Exception):
    """Base class for explorer errors."""


class ResolverError(ExplorerError):
    """A child-name resolver could not produce names."""
