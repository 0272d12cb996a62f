"""Error kinds raised by hack session operations.

Services raise these; routers translate them into HTTP responses.
Every error is raised before any write, so a failed call leaves the
record exactly as it was.
"""


class HackSessionError(Exception):
    kind = "HackSessionError"
    message = "Hack session error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.message
        super().__init__(self.detail)


class InvalidParams(HackSessionError):
    kind = "InvalidParams"
    message = "Invalid hack parameters"


class AlreadyResolved(HackSessionError):
    kind = "AlreadyResolved"
    message = "Hack session already resolved"


class NotResolved(HackSessionError):
    kind = "NotResolved"
    message = "Hack session not yet resolved"


class UnauthorizedCallback(HackSessionError):
    kind = "UnauthorizedCallback"
    message = "Unauthorized callback, only the randomness authority may resolve"


class UnauthorizedPlayer(HackSessionError):
    kind = "UnauthorizedPlayer"
    message = "Caller does not hold the player capability for this session"


class SessionNotFound(HackSessionError):
    kind = "SessionNotFound"
    message = "Hack session not found"


class DuplicateSession(HackSessionError):
    kind = "DuplicateSession"
    message = "Hack session already exists for this player and nonce"
