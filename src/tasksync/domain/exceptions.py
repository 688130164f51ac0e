class TaskNotFoundError(Exception):
    """Raised when a task identifier does not exist in the task store."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task with id '{task_id}' was not found.")
        self.task_id = task_id


class TaskIdMismatchError(Exception):
    """Raised when an update body names a different task than the request path."""

    def __init__(self, path_id: int, body_id: int) -> None:
        super().__init__("Task ID in URL must match ID in body.")
        self.path_id = path_id
        self.body_id = body_id


class UserAlreadyExistsError(Exception):
    def __init__(self, email: str) -> None:
        super().__init__("User already exists!")
        self.email = email


class InvalidCredentialsError(Exception):
    """Raised when an email/password pair does not match a stored user."""


class InvalidTokenError(Exception):
    """Raised when a bearer token is malformed, expired, or signed for someone else."""
