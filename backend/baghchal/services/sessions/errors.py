"""Error taxonomy for room sessions.

Transports map ``kind`` to their own representation (HTTP status code,
``error`` event payload); the message is safe to show to clients.
"""


class SessionError(Exception):
    """Base class for every failure the session core reports."""
    kind = 'Internal'
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind}


class InvalidInput(SessionError):
    """A required field is missing or empty."""
    kind = 'InvalidInput'
    status_code = 400
    default_message = 'Invalid input'


class RoomExists(SessionError):
    kind = 'RoomExists'
    status_code = 400
    default_message = 'Room already exists'

    def __init__(self, code):
        self.code = code
        super().__init__()


class RoomFull(SessionError):
    kind = 'RoomFull'
    status_code = 400
    default_message = 'Room is full'

    def __init__(self, code):
        self.code = code
        super().__init__()


class RoomNotFound(SessionError):
    kind = 'RoomNotFound'
    status_code = 404
    default_message = 'Room not found'

    def __init__(self, code):
        self.code = code
        super().__init__()


class InternalError(SessionError):
    """Unexpected failure inside the core; never carries internal detail."""
