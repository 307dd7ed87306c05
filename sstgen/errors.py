"""
Error types shared by the analyzer, generator, store and deployment runner.
"""

from typing import Any, Dict, Optional


class SSTGenError(Exception):
    """Base class for all sstgen errors."""

    code = "internal_error"
    hint = "Please try again later"

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if hint:
            self.hint = hint

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "hint": self.hint}


class AuthenticationError(SSTGenError):
    code = "unauthorized"
    hint = "Sign in with GitHub again"


class UpstreamError(SSTGenError):
    """GitHub or the language-model host failed or was unreachable."""

    code = "upstream_failed"
    hint = "The remote service may be unavailable, try again"


class ClassificationError(SSTGenError):
    """The model returned something that is not a usable analysis."""

    code = "classification_failed"
    hint = "Try again or switch SSTGEN_CLASSIFIER to 'rules'"


class PrerequisiteError(SSTGenError):
    code = "prerequisite_missing"
    hint = "Install the missing tool and check your AWS credentials"


class DeploymentError(SSTGenError):
    code = "deploy_failed"
    hint = "Check the deployment output and retry"


class StorageError(SSTGenError):
    code = "storage_failed"
    hint = "Saved configurations could not be read or written"


class ValidationError(SSTGenError):
    code = "invalid_request"
    hint = "Check the submitted configuration"


class NotFoundError(SSTGenError):
    code = "not_found"
    hint = "Check the identifier and try again"
