class KubeSimError(Exception):
    """Base exception for the command simulator

    The message is the exact text shown to the user. ``highlight`` marks
    client-side errors that the real tools print in red; ``hint`` is an
    uncoloured follow-up line such as "See 'docker run --help'."
    """
    highlight = True

    def __init__(self, message: str, hint: str = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class UsageError(KubeSimError):
    """Raised when a required argument or flag is missing or malformed"""
    pass


class ParseError(UsageError):
    """Raised when an input line cannot be tokenized"""
    pass


class UnsupportedError(KubeSimError):
    """Raised for unknown tools, subcommands or resource kinds"""
    pass


class ServerError(KubeSimError):
    """Base exception for errors reported by the simulated server/daemon"""
    highlight = False


class NotFoundError(ServerError):
    """Raised when a named resource does not exist"""
    pass


class AlreadyExistsError(ServerError):
    """Raised when creating a resource that already exists"""
    pass


class ForbiddenError(ServerError):
    """Raised when the server refuses an operation on a protected resource"""
    pass


class ConflictError(ServerError):
    """Raised when a resource is in a state that prevents the operation"""
    pass


class AmbiguousMatch(ServerError):
    """Raised when an id prefix matches more than one object"""
    pass


class FixtureError(KubeSimError):
    """Raised when a cluster fixture cannot be read or validated"""
    pass
