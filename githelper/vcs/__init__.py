"""Version-control gateway for githelper."""

from .gateway import GitGateway, RepositoryHandle
from .classifier import FileClassifier
from .lock import RepositoryLock, repository_lock
from .utils import OperationResult, create_failure_result

__all__ = [
    'GitGateway',
    'RepositoryHandle',
    'FileClassifier',
    'RepositoryLock',
    'repository_lock',
    'OperationResult',
    'create_failure_result'
]
