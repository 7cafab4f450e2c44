"""The property store."""

import copy
import os
import sys
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from .callbacks import Callback, CallbackFunc, CallbackPhase, run_callbacks
from .channel import MutationChannel
from .conversions import format_duration, to_string
from .descriptor import Mutation, Property, ValidatorFunc
from .exceptions import (
    CallbackError,
    ConfigFileError,
    ConversionError,
    FrozenStoreError,
    PropTreeError,
    SourceFetchError,
    SourceNotFoundError,
    StorePanic,
    TypeMismatchError,
    UnknownPropertyError,
)
from .kinds import Kind
from .loading import PathLike, decode_file, discover_files
from .logging import get_logger
from .parser import PropertyArgumentParser
from .rules import MergePolicy, Rule, effective
from .saving import write_file
from .sources import Source
from .usage import format_usage
from .utils import environment_names, filter_test_args, normalize_name
from .validation import PropertyValidator
from .value import Value

logger = get_logger(__name__)

ENVIRONMENT_KEY = "CONFIG_FILE"
RESURRECTED_USAGE = "Resurrected"

# Total accessor of ``Value`` per kind
READERS = {
    Kind.STRING: Value.to_string,
    Kind.BOOL: Value.to_bool,
    Kind.INT: Value.to_int,
    Kind.INT64: Value.to_int64,
    Kind.FLOAT64: Value.to_float64,
    Kind.DURATION: Value.to_duration,
    Kind.UNIT_DURATION: Value.to_unit_duration,
    Kind.LIST: Value.to_list,
    Kind.MAP: Value.to_map,
}


def _changed(kind: Kind, old: Any, new: Any) -> bool:
    if kind is Kind.STRING:
        return old.casefold() != new.casefold()
    return old != new


def _plain(value: Value) -> Any:
    """Plain representation of a value for persistence."""
    if value.kind in (Kind.DURATION, Kind.UNIT_DURATION):
        return format_duration(value.raw)
    return copy.copy(value.raw)


class PropertyStore:
    """Concurrency-safe store of typed configuration properties.

    Values are resolved from defaults, command line arguments, configuration
    files and the environment (lowest to highest precedence), then kept live
    for concurrent reads and :meth:`store` writes. With tracking enabled,
    every effective write is published on :meth:`mutations`.

    Example:
        store = PropertyStore.grow(harvest=10)
        store.new_int("port", 8080, "Port to listen on")
        store.with_validator("port", assure.int_in_range(1, 65535))
        store.load()
        port = store.get_int("port")
    """

    def __init__(
        self,
        config_file: Optional[PathLike] = None,
        tracking: bool = False,
        harvest: int = 0,
        filter_test_args: bool = False,
        pollinate: bool = False,
        ignore_environment: bool = False,
        list_policy: MergePolicy = MergePolicy.OVERWRITE,
        map_policy: MergePolicy = MergePolicy.OVERWRITE,
        env_key: str = ENVIRONMENT_KEY,
        prog: Optional[str] = None,
    ):
        """Initialize the store.

        Args:
            config_file: Configuration file merged by :meth:`load`
            tracking: Publish mutation events on every effective write
            harvest: Capacity of the mutation channel  # (0 makes every send wait for a receiver)
            filter_test_args: Drop ``-test.*`` arguments and tolerate unknown ones
            pollinate: Re-read the environment on every read
            ignore_environment: Never read property values from the environment
            list_policy: Whether CLI, file and env list values replace or append
            map_policy: Whether CLI, file and env map values replace or merge
            env_key: Environment variable naming an extra configuration file
            prog: Program name shown in usage  # (defaults to the script name)
        """
        if harvest < 0:
            raise ValueError(f"harvest must be >= 0, got {harvest}")
        self.config_file = config_file
        self.tracking = tracking
        self.harvest = harvest
        self.filter_test_args = filter_test_args
        self.pollinate = pollinate
        self.ignore_environment = ignore_environment
        self.list_policy = list_policy
        self.map_policy = map_policy
        self.env_key = env_key
        self.prog = prog or os.path.basename(sys.argv[0]) or "proptree"

        self._lock = threading.RLock()
        self._frozen = threading.Event()
        self._properties: Dict[str, Property] = {}
        self._values: Dict[str, Value] = {}
        self._withered: Dict[str, Value] = {}
        self._aliases: Dict[str, str] = {}  # alias -> property name
        self._pending_rules: Dict[str, Set[Rule]] = {}
        self._global_rules: Set[Rule] = set()
        self._sources: Dict[str, Source] = {}
        self._channel: MutationChannel[Mutation] = MutationChannel(harvest)
        self._validator = PropertyValidator(self._global_rules)

    @classmethod
    def new(cls, **kwargs: Any) -> "PropertyStore":
        """Create a store without mutation tracking."""
        return cls(tracking=False, **kwargs)

    @classmethod
    def grow(cls, **kwargs: Any) -> "PropertyStore":
        """Create a store with mutation tracking."""
        return cls(tracking=True, **kwargs)

    # Registration

    def _register(
        self, name: str, kind: Kind, value: Any, usage: str, unit: Optional[timedelta] = None
    ) -> "PropertyStore":
        key = normalize_name(name)
        with self._lock:
            if kind is Kind.LIST and Rule.NO_LISTS in self._global_rules:
                logger.debug("list registration disabled", property=key)
                return self
            if kind is Kind.MAP and Rule.NO_MAPS in self._global_rules:
                logger.debug("map registration disabled", property=key)
                return self
            if key in self._properties:
                logger.debug("property already registered", property=key)
                return self
            if key in self._aliases:
                logger.warning("property name already used as alias", property=key, target=self._aliases[key])
                return self

            container = Value(kind, value, unit=unit)
            self._properties[key] = Property(
                name=key,
                kind=kind,
                usage=usage,
                rules=self._pending_rules.pop(key, set()),
            )
            self._values[key] = container
            self._withered[key] = container.copy()
            logger.debug("property registered", property=key, kind=str(kind))
        return self

    def new_string(self, name: str, value: str, usage: str = "") -> "PropertyStore":
        return self._register(name, Kind.STRING, value, usage)

    def new_bool(self, name: str, value: bool, usage: str = "") -> "PropertyStore":
        return self._register(name, Kind.BOOL, value, usage)

    def new_int(self, name: str, value: int, usage: str = "") -> "PropertyStore":
        return self._register(name, Kind.INT, value, usage)

    def new_int64(self, name: str, value: int, usage: str = "") -> "PropertyStore":
        return self._register(name, Kind.INT64, value, usage)

    def new_float64(self, name: str, value: float, usage: str = "") -> "PropertyStore":
        return self._register(name, Kind.FLOAT64, value, usage)

    def new_duration(self, name: str, value: timedelta, usage: str = "") -> "PropertyStore":
        return self._register(name, Kind.DURATION, value, usage)

    def new_unit_duration(self, name: str, value: Any, units: timedelta, usage: str = "") -> "PropertyStore":
        """Register a duration whose bare numbers are counted in ``units``.

        Args:
            name: Property name
            value: Default amount of ``units``  # (a timedelta is taken as is)
            units: Unit applied to bare numbers from any source
            usage: Help text
        """
        return self._register(name, Kind.UNIT_DURATION, value, usage, unit=units)

    def new_list(self, name: str, value: List[str], usage: str = "") -> "PropertyStore":
        return self._register(name, Kind.LIST, value, usage)

    def new_map(self, name: str, value: Dict[str, str], usage: str = "") -> "PropertyStore":
        return self._register(name, Kind.MAP, value, usage)

    # Resolution

    def _lookup(self, name: str) -> Optional[str]:
        # Caller holds the lock
        key = normalize_name(name)
        if key in self._properties:
            return key
        target = self._aliases.get(key)
        if target in self._properties:
            return target
        return None

    def _resurrect(self, name: str, kind: Kind) -> Optional[str]:
        """Register an unknown property on first access.

        The value is taken from the environment, else from the configuration
        files, else the zero value of ``kind``.

        Raises:
            StorePanic: If the name is condemned from resurrection
        """
        key = normalize_name(name)
        with self._lock:
            if self._frozen.is_set():
                return None
            if effective(Rule.CONDEMNED_FROM_RESURRECTION, self._global_rules, self._pending_rules.get(key, set())):
                raise StorePanic(f"property '{key}' is condemned from resurrection")
            self._register(key, kind, None, RESURRECTED_USAGE)
            if key not in self._properties:
                return None

            prop = self._properties[key]
            raw = self._environment_value(prop) if self._environment_enabled(prop) else None
            if raw is None:
                raw = self._file_value(key)
            if raw is not None:
                try:
                    self._values[key].assign(raw)
                except ConversionError as e:
                    prop.attach_error(e)
            logger.debug("property resurrected", property=key, kind=str(kind))
            return key

    def _file_value(self, key: str) -> Any:
        found = None
        for path in discover_files(self.config_file, self._env_key()):
            try:
                data = decode_file(path)
            except PropTreeError as e:
                logger.warning("configuration file skipped", path=str(path), error=str(e))
                continue
            for raw_key, raw_value in data.items():
                if normalize_name(str(raw_key)) == key:
                    found = raw_value
        return found

    def _resolve(self, name: str) -> Optional[Tuple[str, Property]]:
        with self._lock:
            key = self._lookup(name)
            if key is None:
                key = self._resurrect(name, Kind.STRING)
            if key is None:
                return None
            return key, self._properties[key]

    # Reads

    def _read(self, name: str, kind: Kind) -> Any:
        resolved = self._resolve(name)
        if resolved is None:
            return kind.zero()
        key, prop = resolved

        if self.pollinate and not self._frozen.is_set():
            self._pollinate(prop)

        container = self._values[key]
        with_callbacks = not effective(Rule.NO_CALLBACKS, self._global_rules, prop.rules)
        if with_callbacks and not self._run_read_callbacks(prop, CallbackPhase.BEFORE_READ, container.raw):
            return kind.zero()
        result = READERS[kind](container)
        if with_callbacks and not self._run_read_callbacks(prop, CallbackPhase.AFTER_READ, container.raw):
            return kind.zero()
        return result

    def _run_read_callbacks(self, prop: Property, phase: CallbackPhase, value: Any) -> bool:
        try:
            run_callbacks(prop.name, prop.callbacks, phase, value)
        except CallbackError as e:
            with self._lock:
                prop.attach_error(e)
            logger.warning("read callback failed", property=prop.name, phase=str(phase), error=str(e))
            return False
        return True

    def _pollinate(self, prop: Property) -> None:
        if not self._environment_enabled(prop):
            return
        raw = self._environment_value(prop)
        if raw is not None:
            self._store_text(prop.name, raw, "pollinate")

    def get_string(self, name: str) -> str:
        return self._read(name, Kind.STRING)

    def get_bool(self, name: str) -> bool:
        return self._read(name, Kind.BOOL)

    def get_int(self, name: str) -> int:
        return self._read(name, Kind.INT)

    def get_int64(self, name: str) -> int:
        return self._read(name, Kind.INT64)

    def get_float64(self, name: str) -> float:
        return self._read(name, Kind.FLOAT64)

    def get_duration(self, name: str) -> timedelta:
        return self._read(name, Kind.DURATION)

    def get_unit_duration(self, name: str) -> timedelta:
        return self._read(name, Kind.UNIT_DURATION)

    def get_list(self, name: str) -> List[str]:
        """Read a list property.

        Returns:
            A new list in stored order  # (never None)
        """
        return self._read(name, Kind.LIST)

    def get_map(self, name: str) -> Dict[str, str]:
        """Read a map property.

        Returns:
            A new dict  # (never None)
        """
        return self._read(name, Kind.MAP)

    def map_keys(self, name: str) -> List[str]:
        """Sorted keys of a map property."""
        return sorted(self.get_map(name))

    def kind_of(self, name: str) -> Optional[Kind]:
        """Kind of a registered property or alias, None if unknown."""
        with self._lock:
            key = self._lookup(name)
            return self._properties[key].kind if key else None

    # Writes

    def _append_for(self, kind: Kind) -> bool:
        if kind is Kind.LIST:
            return self.list_policy.append
        if kind is Kind.MAP:
            return self.map_policy.append
        return False

    def _store(self, kind: Kind, name: str, value: Any, way: str) -> "PropertyStore":
        with self._lock:
            key = self._lookup(name)
            if key is None:
                key = self._resurrect(name, kind)
            if key is None:
                logger.debug("write rejected, unknown property", property=normalize_name(name), way=way)
                return self
            prop = self._properties[key]

            if self._frozen.is_set():
                prop.attach_error(FrozenStoreError(key))
                logger.warning("write rejected, store is frozen", property=key, way=way)
                return self
            if effective(Rule.PREVENT_CHANGE, self._global_rules, prop.rules):
                logger.debug("write rejected, change prevented", property=key, way=way)
                return self
            if effective(Rule.PANIC_ON_CHANGE, self._global_rules, prop.rules):
                raise StorePanic(f"property '{key}' cannot be changed")

            actual = Kind.of(value)
            if not (prop.kind.accepts(kind) and prop.kind.accepts(actual)):
                prop.attach_error(TypeMismatchError(key, prop.kind, actual or type(value).__name__))
                logger.warning("write rejected, kind mismatch", property=key, expected=str(prop.kind), actual=str(actual))
                return self

            container = self._values[key]
            with_callbacks = not effective(Rule.NO_CALLBACKS, self._global_rules, prop.rules)
            if with_callbacks:
                try:
                    run_callbacks(key, prop.callbacks, CallbackPhase.BEFORE_CHANGE, container.raw)
                except CallbackError as e:
                    prop.attach_error(e)

            try:
                new = Value(prop.kind, value, unit=container.unit).raw
            except ConversionError as e:
                prop.attach_error(e)
                logger.warning("write rejected, conversion failed", property=key, error=str(e))
                return self
            old = container.raw
            if not _changed(prop.kind, old, new):
                return self
            container.raw = new

            if with_callbacks:
                try:
                    run_callbacks(key, prop.callbacks, CallbackPhase.AFTER_CHANGE, new)
                except CallbackError as e:
                    prop.attach_error(e)

            if self.tracking and not self._frozen.is_set():
                mutation = Mutation(
                    property=key,
                    kind=prop.kind.label,
                    way=way,
                    old=copy.copy(old),
                    new=copy.copy(new),
                    when=datetime.now(timezone.utc),
                    error=prop.error,
                )
                logger.debug("mutation emitted", property=key, way=way)
                # Blocks while the channel is full, holding the lock
                self._channel.send(mutation)
        return self

    def _store_text(self, name: str, text: str, way: str) -> "PropertyStore":
        """Store a string after parsing it into the kind of the property."""
        with self._lock:
            key = self._lookup(name)
            if key is None:
                return self._store(Kind.STRING, name, text, way)
            prop = self._properties[key]
            parsed = Value(prop.kind, unit=self._values[key].unit)
            try:
                parsed.set(text)
            except ConversionError as e:
                prop.attach_error(e)
                logger.warning("write rejected, conversion failed", property=key, error=str(e))
                return self
            return self._store(prop.kind, key, parsed.raw, way)

    def store(self, kind: Kind, name: str, value: Any) -> "PropertyStore":
        """Write a value.

        Rejected writes never raise: they are dropped, or recorded as a sticky
        error of the property. Only the panic-on-change rule and condemned
        resurrection raise ``StorePanic``.

        Args:
            kind: Kind the caller writes  # (must agree with the property's kind)
            name: Property name or alias
            value: New value

        Returns:
            The store itself
        """
        return self._store(kind, name, value, f"store_{kind.name.lower()}")

    def store_string(self, name: str, value: str) -> "PropertyStore":
        return self._store(Kind.STRING, name, value, "store_string")

    def store_bool(self, name: str, value: bool) -> "PropertyStore":
        return self._store(Kind.BOOL, name, value, "store_bool")

    def store_int(self, name: str, value: int) -> "PropertyStore":
        return self._store(Kind.INT, name, value, "store_int")

    def store_int64(self, name: str, value: int) -> "PropertyStore":
        return self._store(Kind.INT64, name, value, "store_int64")

    def store_float64(self, name: str, value: float) -> "PropertyStore":
        return self._store(Kind.FLOAT64, name, value, "store_float64")

    def store_duration(self, name: str, value: timedelta) -> "PropertyStore":
        return self._store(Kind.DURATION, name, value, "store_duration")

    def store_unit_duration(self, name: str, value: Any, units: timedelta) -> "PropertyStore":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = units * value
        return self._store(Kind.UNIT_DURATION, name, value, "store_unit_duration")

    def store_list(self, name: str, value: List[str]) -> "PropertyStore":
        return self._store(Kind.LIST, name, value, "store_list")

    def store_map(self, name: str, value: Dict[str, str]) -> "PropertyStore":
        return self._store(Kind.MAP, name, value, "store_map")

    # Aliases, validators, callbacks and rules

    def with_alias(self, name: str, alias: str) -> "PropertyStore":
        """Let ``alias`` address the property ``name``.

        The first registration of an alias wins. An alias never shadows
        another alias or a property name.
        """
        alias_key = normalize_name(alias)
        with self._lock:
            key = self._lookup(name)
            if key is None:
                logger.warning("alias for unknown property ignored", property=normalize_name(name), alias=alias_key)
            elif alias_key in self._aliases:
                logger.debug("alias already registered", alias=alias_key, target=self._aliases[alias_key])
            elif alias_key in self._properties:
                logger.warning("alias shadows a property", alias=alias_key)
            else:
                self._aliases[alias_key] = key
        return self

    def _existing(self, name: str, what: str) -> Optional[Property]:
        # Caller holds the lock
        key = self._lookup(name)
        if key is None:
            logger.warning(f"{what} for unknown property ignored", property=normalize_name(name))
            return None
        return self._properties[key]

    def with_validator(self, name: str, validator: ValidatorFunc) -> "PropertyStore":
        with self._lock:
            prop = self._existing(name, "validator")
            if prop is not None and not effective(Rule.NO_VALIDATIONS, self._global_rules, prop.rules):
                prop.validators.append(validator)
        return self

    def with_validators(self, name: str, *validators: ValidatorFunc) -> "PropertyStore":
        for validator in validators:
            self.with_validator(name, validator)
        return self

    def with_callback(self, name: str, phase: CallbackPhase, func: CallbackFunc) -> "PropertyStore":
        with self._lock:
            prop = self._existing(name, "callback")
            if prop is not None:
                prop.callbacks.append(Callback(phase, func))
        return self

    def with_rule(self, name: str, rule: Rule) -> "PropertyStore":
        """Attach a rule to one property.

        Rules on names not registered yet are held and attached at registration.
        """
        with self._lock:
            key = self._lookup(name)
            if key is None:
                self._pending_rules.setdefault(normalize_name(name), set()).add(rule)
            else:
                self._properties[key].rules.add(rule)
        return self

    def with_global_rule(self, rule: Rule) -> "PropertyStore":
        with self._lock:
            self._global_rules.add(rule)
        return self

    def has_rule(self, rule: Rule, name: Optional[str] = None) -> bool:
        """Check a rule globally, or as effective on the property ``name``."""
        with self._lock:
            if name is None:
                return rule in self._global_rules
            key = self._lookup(name)
            own = self._properties[key].rules if key else self._pending_rules.get(normalize_name(name), set())
            return effective(rule, self._global_rules, own)

    # Environment

    def _env_key(self) -> Optional[str]:
        if self.ignore_environment or Rule.NO_ENV in self._global_rules:
            return None
        return self.env_key

    def _environment_enabled(self, prop: Property) -> bool:
        return not self.ignore_environment and not effective(Rule.NO_ENV, self._global_rules, prop.rules)

    def _environment_value(self, prop: Property) -> Optional[str]:
        for variable in environment_names(prop.name):
            if variable in os.environ:
                return os.environ[variable]
        return None

    def _apply_environment(self) -> None:
        with self._lock:
            for key, prop in self._properties.items():
                if not self._environment_enabled(prop):
                    continue
                raw = self._environment_value(prop)
                if raw is None:
                    continue
                try:
                    self._values[key].set(raw, append=self._append_for(prop.kind))
                except ConversionError as e:
                    prop.attach_error(e)
                    logger.warning("invalid environment value", property=key, error=str(e))

    # Loading

    def _check_errors(self) -> None:
        with self._lock:
            for key in sorted(self._properties):
                error = self._properties[key].error
                if error is not None:
                    raise error

    def _parse_flags(self, args: Optional[List[str]]) -> None:
        if Rule.NO_FLAGS in self._global_rules:
            return
        if args is None:
            args = sys.argv[1:]
        if self.filter_test_args:
            args = filter_test_args(args)

        parser = PropertyArgumentParser(
            prog=self.prog,
            list_append=self.list_policy.append,
            map_append=self.map_policy.append,
        )
        with self._lock:
            for key in sorted(self._properties):
                prop = self._properties[key]
                if Rule.NO_FLAGS in prop.rules:
                    continue
                aliases = sorted(alias for alias, target in self._aliases.items() if target == key)
                parser.bind(key, self._values[key], aliases, prop.usage)
        parser.parse_into(args, tolerate_unknown=self.filter_test_args)

    def _merge_file(self, path: PathLike) -> None:
        """Merge one configuration file into the containers.

        Unknown keys are ignored. Keys match property names and aliases
        case-insensitively.

        Raises:
            ConfigFileError: If the file cannot be decoded or a value does not convert
        """
        data = decode_file(path)
        with self._lock:
            for raw_key, raw_value in data.items():
                key = self._lookup(str(raw_key))
                if key is None:
                    logger.debug("unknown configuration key ignored", key=str(raw_key), path=str(path))
                    continue
                container = self._values[key]
                if raw_value is None:
                    raw_value = container.kind.zero()
                try:
                    container.assign(raw_value, append=self._append_for(container.kind))
                except ConversionError as e:
                    raise ConfigFileError(path, f"invalid value for {raw_key}: {e}") from e
        logger.debug("configuration file merged", path=str(path))

    def validate_all(self) -> None:
        """Run the verify pipeline of every property in name order.

        Raises:
            PropertyError: If a property carries a sticky error
            CallbackError: If a verify callback fails
            ValidationError: If a validator rejects a value
        """
        with self._lock:
            entries = [(self._properties[key], self._values[key].raw) for key in sorted(self._properties)]
        self._validator.validate_all(entries)

    def parse(self, args: Optional[List[str]] = None) -> None:
        """Apply command line arguments and the environment, then validate.

        Args:
            args: Command line arguments  # (defaults to sys.argv[1:])

        Raises:
            PropertyError: If a property already carries a sticky error
            FlagParseError: If the arguments do not parse
            ValidationError: If a validator rejects a value
        """
        self._check_errors()
        self._parse_flags(args)
        self._apply_environment()
        self.validate_all()

    def load(self, args: Optional[List[str]] = None) -> None:
        """Like :meth:`parse`, merging every discovered configuration file before the environment.

        Precedence: environment > later file > earlier file > CLI > default.
        """
        self._check_errors()
        self._parse_flags(args)
        for path in discover_files(self.config_file, self._env_key()):
            self._merge_file(path)
        self._apply_environment()
        self.validate_all()

    def load_file(self, path: PathLike, args: Optional[List[str]] = None) -> None:
        """Like :meth:`load` with ``path`` as the only configuration file.

        Raises:
            ConfigFileError: If ``path`` does not exist  # (after env and validation ran)
        """
        self._check_errors()
        self._parse_flags(args)
        missing = None
        if Path(path).is_file():
            self._merge_file(path)
        else:
            missing = ConfigFileError(path, "file does not exist")
        self._apply_environment()
        self.validate_all()
        if missing is not None:
            raise missing

    def reload(self) -> None:
        """Re-apply the environment and validate again."""
        self._apply_environment()
        self.validate_all()

    def read_from(self, path: PathLike) -> None:
        """Merge one configuration file into the live store.

        Raises:
            ConfigFileError: If the file is missing or does not merge
        """
        if not Path(path).is_file():
            raise ConfigFileError(path, "file does not exist")
        self._merge_file(path)

    def save_to(self, path: PathLike) -> Path:
        """Write every property value to ``path`` as YAML, JSON or INI.

        Raises:
            UnsupportedFileError: For any other extension
        """
        with self._lock:
            values = {key: _plain(self._values[key]) for key in sorted(self._properties)}
        return write_file(values, path)

    # Inspection and lifecycle

    def error_for(self, name: str) -> Optional[PropTreeError]:
        """Sticky error of a property, None when it has none.

        Raises:
            UnknownPropertyError: If no property or alias has this name
        """
        with self._lock:
            key = self._lookup(name)
            if key is None:
                raise UnknownPropertyError(normalize_name(name))
            return self._properties[key].error

    def mutations(self) -> MutationChannel:
        return self._channel

    def freeze(self) -> None:
        """Reject every further write and close the mutation channel."""
        with self._lock:
            if self._frozen.is_set():
                return
            self._frozen.set()
            self.tracking = False
            self._channel.close()
        logger.debug("store frozen")

    def unfreeze(self) -> None:
        """Accept writes again, with tracking on a fresh mutation channel."""
        with self._lock:
            self._frozen.clear()
            if self._channel.closed:
                self._channel = MutationChannel(self.harvest)
            self.tracking = True
        logger.debug("store unfrozen")

    @property
    def frozen(self) -> bool:
        return self._frozen.is_set()

    def value(self, name: str) -> Optional[Value]:
        """Copy of the container of a property, None if unknown."""
        with self._lock:
            key = self._lookup(name)
            return self._values[key].copy() if key else None

    def properties(self) -> List[str]:
        with self._lock:
            return sorted(self._properties)

    def withered(self, name: str) -> Optional[Value]:
        """Copy of the value a property had at registration."""
        with self._lock:
            key = self._lookup(name)
            return self._withered[key].copy() if key else None

    def restore(self, name: str) -> "PropertyStore":
        """Write back the value a property had at registration."""
        with self._lock:
            key = self._lookup(name)
            if key is None:
                return self
            snapshot = self._withered[key]
            return self._store(snapshot.kind, key, snapshot.raw, "restore")

    def usage(self) -> str:
        with self._lock:
            entries = []
            for key in sorted(self._properties):
                aliases = [alias for alias, target in self._aliases.items() if target == key]
                entries.append((self._properties[key], to_string(self._withered[key].raw), aliases))
        return format_usage(self.prog, entries)

    # Sources

    def with_source(self, name: str, source: Source) -> "PropertyStore":
        with self._lock:
            self._sources[normalize_name(name)] = source
        return self

    def source(self, name: str) -> "PropertyStore":
        """Fetch the source of ``name`` and store the result.

        Raises:
            SourceNotFoundError: If no source is registered for ``name``
        """
        key = normalize_name(name)
        with self._lock:
            source = self._sources.get(key)
        if source is None:
            raise SourceNotFoundError(key)
        return self._store_text(key, source.fetch(), "source")

    def load_all_from_sources(self) -> None:
        """Fetch every source and store the results of registered properties.

        Raises:
            SourceFetchError: With every source that failed  # (the others are still stored)
        """
        with self._lock:
            sources = sorted(self._sources.items())
        errors: Dict[str, BaseException] = {}
        for key, source in sources:
            try:
                result = source.fetch()
            except Exception as e:
                errors[key] = e
                continue
            with self._lock:
                known = self._lookup(key) is not None
            if known:
                self._store_text(key, result, "load_all_from_sources")
        if errors:
            raise SourceFetchError(errors)
