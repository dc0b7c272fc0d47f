class TodoError(Exception):
    pass


class NotFoundError(TodoError):
    pass


class ValidationError(TodoError):
    pass


class ApiError(TodoError):
    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"asana api error ({status}): {body}")


class DecodeError(TodoError):
    pass


class UnknownStatError(DecodeError):
    def __init__(self, gid: str):
        self.gid = gid
        super().__init__(f"unknown focus day stat gid: {gid}")


class AuthError(TodoError):
    pass


class UnableToRefreshError(AuthError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"unable to refresh access token: {reason}")


class AlreadyLockedError(TodoError):
    def __init__(self) -> None:
        super().__init__("another authorization flow is already in progress")
