from enum import auto
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from pydantic import BaseModel
from strenum import StrEnum

from save_metadata import IntegrityService, MetadataStore, save_metadata_settings

v1_prefix = "/save_metadata/v1"


class PathVariables(StrEnum):
    """Path variables used in the router."""

    filename = auto()


class RouteNames(StrEnum):
    """Route names used in the router."""

    get_all_entries = auto()
    get_entry = auto()
    get_statistics = auto()
    get_metadata = auto()
    validate_all = auto()
    validate_one = auto()
    reconcile = auto()


class RouteRegistry:
    """Registry of route paths, keyed by (prefix, route_name)."""

    _routes: dict[tuple[str, RouteNames], str]

    def __init__(self) -> None:
        """Initialize the route registry."""
        self._routes = {}

    def register_route(self, prefix: str, route_name: RouteNames, path: str) -> None:
        """Register a route with its path.

        Args:
            prefix (str): The prefix to use for the route (e.g., "/save_metadata/v1").
            route_name (RouteNames): The name of the route to register.
            path (str): The path of the route.
        """
        self._routes[(prefix, route_name)] = f"{prefix}{path}"

    def url_for(self, route_name: RouteNames, path_params: dict[str, str], prefix: str = v1_prefix) -> str:
        """Get the URL for a registered route.

        Args:
            route_name (RouteNames): The name of the route to get the URL for.
            path_params (dict[str, str]): The path parameters to include in the URL.
            prefix (str): The API prefix.

        Returns:
            str: The complete URL path with parameters substituted.

        Raises:
            ValueError: If the route is not registered.
        """
        path = self._routes.get((prefix, route_name))
        if path is None:
            raise ValueError(f"Route {route_name} with prefix {prefix} is not registered.")

        for key_name, value in path_params.items():
            path = path.replace(f"{{{key_name}}}", value)
        return path


route_registry = RouteRegistry()


class ErrorResponse(BaseModel):
    """Standardized error response."""

    detail: str
    """Error message."""


@lru_cache(maxsize=1)
def get_metadata_store() -> MetadataStore:
    """Dependency providing the store for the configured directory."""
    return MetadataStore(save_metadata_settings.store_directory)


def get_integrity_service(store: Annotated[MetadataStore, Depends(get_metadata_store)]) -> IntegrityService:
    """Dependency providing an integrity service over the store in use."""
    return IntegrityService(store)
