from __future__ import annotations


class SignupError(Exception):
    status_code = 500
    detail = "Server error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class SignupRejected(SignupError):
    """Client-caused outcome; the submission must be corrected or dropped."""

    status_code = 400


class MissingFieldsError(SignupRejected):
    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Missing required fields: {', '.join(fields)}")


class InvalidEmailError(SignupRejected):
    detail = "Please provide a valid email address."


class CapacityExceededError(SignupRejected):
    def __init__(self, max_signups: int) -> None:
        self.max_signups = max_signups
        super().__init__(f"Sorry, we've reached the limit of {max_signups} founding beta signups.")


class DuplicateEmailError(SignupRejected):
    detail = "You have already signed up with this email."


class ServerConfigurationError(SignupError):
    def __init__(self, missing: str) -> None:
        super().__init__(f"Server configuration error: {missing}")


class ServiceError(SignupError):
    pass
