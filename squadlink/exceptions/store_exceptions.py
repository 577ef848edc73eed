from fastapi import status

from .base import AppError


class StoreError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "The document store returned an unexpected error."


class NetworkError(StoreError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "The document store could not be reached. Please try again."
    retryable = True


class StorePermissionError(StoreError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "The document store rejected the operation for this user."

    def __init__(self, path: str | None = None):
        detail = None
        if path:
            detail = f"Permission denied for document path '{path}'."
        super().__init__(detail)


class DocumentAlreadyExistsError(StoreError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Document '{path}' already exists.")


class DocumentNotFoundError(StoreError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Document '{path}' does not exist.")
