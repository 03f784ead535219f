from clients.quickfix_client_sdk.bindings import ALL_BINDINGS
from clients.quickfix_client_sdk.config import SDKConfig
from clients.quickfix_client_sdk.errors import ApiError
from clients.quickfix_client_sdk.http_client import HttpClient
from clients.quickfix_client_sdk.models import Resource, ResourceSet
from clients.quickfix_client_sdk.normalizers import normalize_listing
from clients.quickfix_client_sdk.resource_client import (
    AdminClient,
    NewsletterClient,
    ResourceBinding,
    ResourceClient,
    SupportClient,
    ToggleRoute,
)

__all__ = [
    "SDKConfig",
    "ApiError",
    "HttpClient",
    "Resource",
    "ResourceSet",
    "ResourceBinding",
    "ResourceClient",
    "NewsletterClient",
    "SupportClient",
    "AdminClient",
    "ToggleRoute",
    "ALL_BINDINGS",
    "normalize_listing",
]
