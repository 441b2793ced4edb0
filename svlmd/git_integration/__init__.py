"""Git integration: the version-control backend used for change detection."""

from svlmd.git_integration.errors import BackendError, GitRepositoryError
from svlmd.git_integration.git_repository import GIT_TIMEOUT, GitRepository
from svlmd.git_integration.models import PathChange, PathStatus

__all__ = [
    # Errors
    'BackendError',
    'GitRepositoryError',
    # Components
    'GIT_TIMEOUT',
    'GitRepository',
    # Models
    'PathChange',
    'PathStatus',
]
