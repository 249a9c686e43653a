"""Store configuration and functional construction options."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable

import click

from kvstore.exceptions import ConfigurationError

if TYPE_CHECKING:
    from kvstore.store import Store

DEFAULT_STORE_FILE = "store.json"
STORE_FILE_ENV = "KVSTORE_STORE_FILE"


def _default_store_file() -> str:
    return os.environ.get(STORE_FILE_ENV) or DEFAULT_STORE_FILE


@dataclass(frozen=True)
class StoreConfig:
    store_file: str = ""  # empty = KVSTORE_STORE_FILE or store.json
    strict: bool = False  # raise on load/save failures instead of logging

    def __post_init__(self) -> None:
        if not self.store_file:
            object.__setattr__(self, "store_file", _default_store_file())


StoreOption = Callable[["Store[Any]"], None]


def _validate_store_file(path: str) -> str:
    if not path or not path.strip():
        raise ConfigurationError("store_file cannot be empty")
    if os.path.isdir(path):
        raise ConfigurationError(f"store_file {path!r} is a directory")
    return path


def with_config(config: StoreConfig) -> StoreOption:
    """Use a complete configuration value."""

    def apply(store: Store[Any]) -> None:
        _validate_store_file(config.store_file)
        store.config = config

    return apply


def with_store_file(path: str) -> StoreOption:
    """Override the persistence file path."""

    def apply(store: Store[Any]) -> None:
        store.config = replace(store.config or StoreConfig(), store_file=_validate_store_file(path))

    return apply


def with_strict(strict: bool = True) -> StoreOption:
    """Raise StoreError subclasses on load/save failures."""

    def apply(store: Store[Any]) -> None:
        store.config = replace(store.config or StoreConfig(), strict=strict)

    return apply


def store_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add --store-file and --strict flags to a click command."""
    func = click.option(
        "--strict",
        is_flag=True,
        default=False,
        help="Fail on unreadable or unwritable store files instead of logging.",
    )(func)
    func = click.option(
        "--store-file",
        envvar=STORE_FILE_ENV,
        default=DEFAULT_STORE_FILE,
        show_default=True,
        help="File to keep the store in between runs.",
    )(func)
    return func


def config_from_flags(store_file: str, strict: bool) -> StoreConfig:
    """Build a StoreConfig from parsed store_options flags."""
    return StoreConfig(store_file=_validate_store_file(store_file), strict=strict)
