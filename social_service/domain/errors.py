# social_service/domain/errors.py


class DomainError(Exception):
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationError(DomainError):
    code = "forbidden"


class NotFoundError(DomainError):
    code = "not_found"


class ModerationError(DomainError):
    """Raised when the caller is muted or banned."""

    code = "moderated"


class ConflictError(DomainError):
    code = "conflict"


class ValidationFailure(DomainError):
    code = "invalid"


class GroupNotFound(NotFoundError):
    def __init__(self, group_id: int):
        super().__init__("Group not found")
        self.group_id = group_id
