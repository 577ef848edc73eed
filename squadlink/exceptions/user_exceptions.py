from fastapi import status

from .base import AppError


class UserNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, user_id: str):
        detail = f"User with id {user_id} not found."
        super().__init__(detail)


class UsernameTakenError(AppError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, username: str):
        detail = f"Username {username} is already taken."
        super().__init__(detail)


class InvalidUsernameError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, username: str):
        detail = (
            f"Invalid username {username!r}. Use 3-20 characters: "
            "letters, numbers, underscores and dots."
        )
        super().__init__(detail)
