# app/exceptions/auth.py
"""Identity failures raised by the auth endpoints"""
from fastapi import HTTPException, status


class AuthError(HTTPException):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Authentication failed"

    def __init__(self, detail: str = None, headers: dict = None):
        super().__init__(status_code=self.status_code, detail=detail or self.detail, headers=headers)


class InvalidCredentialsError(AuthError):
    detail = "Incorrect username or password"

    def __init__(self):
        super().__init__(headers={"WWW-Authenticate": "Bearer"})


class InactiveUserError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Account is inactive."


class UserAlreadyExistsError(AuthError):
    status_code = status.HTTP_409_CONFLICT
    detail = "User with this email already exists."
