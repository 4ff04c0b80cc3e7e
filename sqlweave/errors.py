"""
Exceptions for sqlweave.

Every error raised while assembling a session factory derives from
SqlWeaveError. Assembly errors are fatal for the named configuration being
built and never for its siblings.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence


class SqlWeaveError(Exception):
    """Base exception for sqlweave errors."""

    pass


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(SqlWeaveError):
    """Raised when declarative configuration is invalid."""

    pass


class MapperDocumentNotFoundError(ConfigurationError):
    """
    Raised when requested mapper documents match no search root.

    Only the aggregate is reported: the filenames that matched no root at
    all and the full list of roots that were searched.
    """

    def __init__(self, missing: Iterable[str], search_paths: Sequence[str]):
        self.missing = sorted(set(missing))
        self.search_paths = list(search_paths)
        super().__init__(
            f"Does not exist {self.missing} in either {self.search_paths} "
            "on your resource path."
        )


class DataSourceNotFoundError(SqlWeaveError):
    """Raised when no connection source is registered under the looked-up name."""

    def __init__(self, qualifier: str, configuration_name: str | None = None):
        self.qualifier = qualifier
        self.configuration_name = configuration_name
        message = f"No data source exists for the given qualifier: '{qualifier}'"
        if configuration_name and configuration_name != qualifier:
            message += f" (required by configuration '{configuration_name}')"
        super().__init__(message + ".")


class DatabaseIdResolutionError(SqlWeaveError):
    """Raised when the database-identity resolver fails against the data source."""

    pass


class MapperDocumentError(SqlWeaveError):
    """Raised when a mapper document cannot be parsed against the registries."""

    def __init__(self, message: str, resource: str | None = None):
        super().__init__(message)
        self.resource = resource

    def __str__(self) -> str:
        if self.resource:
            return f"[{self.resource}] {self.args[0]}"
        return str(self.args[0])


# =============================================================================
# Registries
# =============================================================================


class TypeAliasError(SqlWeaveError):
    """Raised on alias conflicts or unresolvable aliases."""

    pass


class TypeConverterError(SqlWeaveError):
    """Raised when a type converter cannot be registered or applied."""

    pass


class NonUniqueComponentError(SqlWeaveError):
    """Raised when a single component was expected but several are registered."""

    pass


class FrozenConfigurationError(SqlWeaveError):
    """Raised when a built registry set is mutated."""

    pass


class AssemblyOrderError(SqlWeaveError):
    """Raised when an assembly pass runs before the passes it depends on."""

    pass


class BindingError(SqlWeaveError):
    """Raised when a mapper method has no bound statement or cannot be bound."""

    pass


# =============================================================================
# Loading
# =============================================================================


class SessionFactoryLoadError(SqlWeaveError):
    """
    Aggregate of per-configuration failures from a multi-configuration load.

    Attributes:
        errors: Mapping of configuration name to the exception it raised
        factories: Session factories that were built successfully
    """

    def __init__(self, errors: dict[str, BaseException], factories: dict | None = None):
        self.errors = dict(errors)
        self.factories = dict(factories or {})
        details = "; ".join(f"{name}: {exc}" for name, exc in self.errors.items())
        super().__init__(
            f"Failed to build {len(self.errors)} session factory(ies): {details}"
        )


# =============================================================================
# Sessions
# =============================================================================


class TooManyResultsError(SqlWeaveError):
    """Raised when a single-row select returns more than one row."""

    pass


class SessionClosedError(SqlWeaveError):
    """Raised when a closed session is used."""

    pass


class NoSuchBeanError(SqlWeaveError):
    """Raised when the bean context holds no unambiguous match for a lookup."""

    pass
