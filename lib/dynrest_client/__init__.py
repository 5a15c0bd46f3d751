from .client import DynrestClient, ServiceRole, create_client
from .config_types import ClientConfig
from .credentials import Credential, MemoryStorage, TokenStorage
from .encoding import FormData, UploadFile
from .errors import (
    ApiError,
    AuthError,
    ConfigError,
    DynrestClientError,
    HttpError,
    NetworkError,
    ProblemError,
)
from .navigation import BrowserNavigator, Navigator
from .server import create_client_from_request

__all__ = [
    "DynrestClient",
    "ServiceRole",
    "create_client",
    "create_client_from_request",
    "ClientConfig",
    "Credential",
    "MemoryStorage",
    "TokenStorage",
    "FormData",
    "UploadFile",
    "Navigator",
    "BrowserNavigator",
    "DynrestClientError",
    "ApiError",
    "AuthError",
    "ConfigError",
    "HttpError",
    "NetworkError",
    "ProblemError",
]
