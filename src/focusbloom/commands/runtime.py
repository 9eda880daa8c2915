"""Builds the service container used by commands."""

from focusbloom.services.config_service import get_config_service
from focusbloom.services.container import ServiceContainer
from focusbloom.services.storage import JsonFileStore


def build_container() -> ServiceContainer:
    """Wire services from the current configuration and on-disk store."""
    config_service = get_config_service()
    store = JsonFileStore(config_service.store_dir)
    return ServiceContainer.create(config_service.config, store)
