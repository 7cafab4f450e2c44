"""proptree - Concurrency-safe configuration property store.

Typed properties resolved from defaults, command line arguments, configuration
files and the environment, with validators, lifecycle callbacks, behavior rules
and live mutation tracking.
"""
# ruff: noqa: F401

from . import assure
from .callbacks import Callback, CallbackPhase
from .channel import ChannelClosedError, MutationChannel
from .descriptor import Mutation, Property
from .exceptions import (
    CallbackError,
    ConfigFileError,
    ConversionError,
    FlagParseError,
    FrozenStoreError,
    PropertyError,
    PropTreeError,
    SourceFetchError,
    SourceNotFoundError,
    StorePanic,
    TypeMismatchError,
    UnknownPropertyError,
    UnsupportedFileError,
    ValidationError,
)
from .kinds import Kind
from .loading import CONFIG_FILE_PATH, DEFAULT_INI_FILE, DEFAULT_JSON_FILE, DEFAULT_YAML_FILE
from .logging import configure_logging
from .rules import MergePolicy, Rule
from .sources import CallableSource, FileSource, Source
from .store import ENVIRONMENT_KEY, PropertyStore
from .value import Value

__version__ = "0.1.0"
