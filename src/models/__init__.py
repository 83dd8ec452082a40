from src.models.signup_request import (
    SignupRequest,
    SignupRequestCreate,
    SignupSubmission,
    canonical_email,
    normalize_email,
)

__all__ = [
    "SignupRequest",
    "SignupRequestCreate",
    "SignupSubmission",
    "canonical_email",
    "normalize_email",
]
