"""
Tests for the registry set.

Tests for:
- TypeAliasRegistry
- TypeConverterRegistry
- LanguageDriverRegistry and variable substitution
- InterceptorChain
- Caches and database identity
- Configuration freezing
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine

from sqlweave.errors import (
    BindingError,
    FrozenConfigurationError,
    MapperDocumentError,
    TypeAliasError,
    TypeConverterError,
)
from sqlweave.mapping import MappedStatement, SqlCommandType, StaticSqlSource
from sqlweave.registry import (
    Configuration,
    DefaultObjectFactory,
    DefaultReflectorFactory,
    Interceptor,
    InterceptorChain,
    LanguageDriver,
    LanguageDriverRegistry,
    LruCache,
    RawLanguageDriver,
    TypeAliasRegistry,
    TypeConverter,
    TypeConverterRegistry,
    VendorDatabaseIdProvider,
    XmlLanguageDriver,
    substitute_variables,
)
from sqlweave_fixtures.converters import MoneyConverter
from sqlweave_fixtures.domain import City, Country, Entity, Money, Region
from sqlweave_fixtures.mappers.city import CityMapper

# =============================================================================
# Type aliases
# =============================================================================


class TestTypeAliasRegistry:
    """Tests for TypeAliasRegistry."""

    def test_builtin_aliases(self):
        registry = TypeAliasRegistry()
        assert registry.resolve_alias("string") is str
        assert registry.resolve_alias("INT") is int
        assert registry.resolve_alias("map") is dict

    def test_register_class_uses_explicit_alias(self):
        registry = TypeAliasRegistry()
        registry.register_alias(City)
        assert registry.resolve_alias("city") is City
        assert registry.has_alias("CITY")

    def test_register_class_defaults_to_class_name(self):
        registry = TypeAliasRegistry()
        registry.register_alias(Region)
        assert registry.resolve_alias("Region") is Region

    def test_same_alias_same_type_is_idempotent(self):
        registry = TypeAliasRegistry()
        registry.register_alias(City)
        registry.register_alias("City", City)
        assert registry.resolve_alias("City") is City

    def test_conflicting_alias(self):
        registry = TypeAliasRegistry()
        registry.register_alias("City", City)
        with pytest.raises(TypeAliasError, match="already mapped"):
            registry.register_alias("city", Country)

    def test_dotted_path_fallback(self):
        registry = TypeAliasRegistry()
        assert registry.resolve_alias("sqlweave_fixtures.domain.Region") is Region

    def test_unknown_alias(self):
        with pytest.raises(TypeAliasError, match="Could not resolve"):
            TypeAliasRegistry().resolve_alias("NoSuchType")

    def test_none_and_types_pass_through(self):
        registry = TypeAliasRegistry()
        assert registry.resolve_alias(None) is None
        assert registry.resolve_alias(City) is City

    def test_register_aliases_bounded_by_super_type(self):
        registry = TypeAliasRegistry()
        count = registry.register_aliases([City, Country, Region, Money], super_type=Entity)
        assert count == 2
        assert registry.has_alias("City")
        assert not registry.has_alias("Region")
        assert not registry.has_alias("Money")

    def test_register_aliases_skips_interfaces(self):
        registry = TypeAliasRegistry()
        assert registry.register_aliases([CityMapper]) == 0
        assert not registry.has_alias("CityMapper")

    def test_frozen(self):
        registry = TypeAliasRegistry()
        registry.freeze()
        with pytest.raises(FrozenConfigurationError):
            registry.register_alias(City)


# =============================================================================
# Type converters
# =============================================================================


class SubMoney(Money):
    pass


class TestTypeConverterRegistry:
    """Tests for TypeConverterRegistry."""

    def test_builtin_converters(self):
        registry = TypeConverterRegistry()
        assert registry.get_converter(Decimal).to_python("1.50") == Decimal("1.50")
        assert registry.get_converter(int).to_python("7") == 7

    def test_register_class(self):
        registry = TypeConverterRegistry()
        registry.register(MoneyConverter)
        converter = registry.get_converter(Money)
        assert converter.to_database(Money(Decimal("10"), "EUR")) == "10 EUR"
        assert converter.to_python("10 EUR") == Money(Decimal("10"), "EUR")

    def test_lookup_walks_mro(self):
        registry = TypeConverterRegistry()
        registry.register(MoneyConverter)
        assert isinstance(registry.get_converter(SubMoney), MoneyConverter)

    def test_later_registration_wins(self):
        registry = TypeConverterRegistry()
        first, second = MoneyConverter(), MoneyConverter()
        registry.register(first)
        registry.register(second)
        assert registry.get_converter(Money) is second

    def test_converter_without_types_rejected(self):
        class Untyped(TypeConverter):
            def to_database(self, value):
                return value

            def to_python(self, value):
                return value

        with pytest.raises(TypeConverterError, match="python_types"):
            TypeConverterRegistry().register(Untyped)

    def test_non_converter_rejected(self):
        with pytest.raises(TypeConverterError, match="not a TypeConverter"):
            TypeConverterRegistry().register(object())

    def test_register_all_filters_candidates(self):
        registry = TypeConverterRegistry()
        count = registry.register_all([MoneyConverter, City, TypeConverter])
        assert count == 1
        assert registry.has_converter(Money)

    def test_unknown_type(self):
        assert TypeConverterRegistry().get_converter(City) is None


# =============================================================================
# Scripting
# =============================================================================


class UpperDriver(LanguageDriver):
    def create_sql_source(self, configuration, script):
        return StaticSqlSource(script.upper())


class TestScripting:
    """Tests for language drivers."""

    def test_substitute_variables(self):
        variables = {"schema": "app"}
        assert substitute_variables("SELECT * FROM ${schema}.city", variables) == "SELECT * FROM app.city"

    def test_substitute_default(self):
        assert substitute_variables("SELECT '${name:fallback}'", {}) == "SELECT 'fallback'"

    def test_unknown_variable_left_in_place(self):
        assert substitute_variables("SELECT ${missing}", {}) == "SELECT ${missing}"

    def test_default_driver_is_xml(self):
        registry = LanguageDriverRegistry()
        assert registry.default_driver_class is XmlLanguageDriver
        assert set(registry.driver_classes) == {XmlLanguageDriver, RawLanguageDriver}

    def test_first_registration_of_a_class_wins(self):
        registry = LanguageDriverRegistry()
        first = UpperDriver()
        registry.register(first)
        registry.register(UpperDriver())
        registry.register(UpperDriver)
        assert registry.get_driver(UpperDriver) is first

    def test_set_default_registers_driver(self):
        registry = LanguageDriverRegistry()
        registry.set_default_driver_class(UpperDriver)
        assert isinstance(registry.default_driver, UpperDriver)

    def test_set_default_none_restores_xml(self):
        registry = LanguageDriverRegistry()
        registry.set_default_driver_class(UpperDriver)
        registry.set_default_driver_class(None)
        assert registry.default_driver_class is XmlLanguageDriver

    def test_rejects_non_driver(self):
        with pytest.raises(TypeError):
            LanguageDriverRegistry().register(City)

    def test_xml_driver_binds_parameters(self):
        configuration = Configuration()
        configuration.variables["table"] = "city"
        source = XmlLanguageDriver().create_sql_source(
            configuration, "SELECT * FROM ${table} WHERE id = #{id} AND name = #{city.name}"
        )
        bound = source.get_bound_sql({"id": 1, "city": {"name": "Osaka"}})
        assert bound.sql == "SELECT * FROM city WHERE id = :id AND name = :city_name"
        assert bound.parameters == {"id": 1, "city_name": "Osaka"}

    def test_missing_parameter(self):
        source = StaticSqlSource("SELECT * FROM city WHERE id = #{id}")
        with pytest.raises(KeyError, match="id"):
            source.get_bound_sql({})

    def test_raw_driver_passes_sql_through(self):
        source = RawLanguageDriver().create_sql_source(Configuration(), "SELECT :id, '#{x}'")
        bound = source.get_bound_sql({"id": 1})
        assert bound.sql == "SELECT :id, '#{x}'"
        assert bound.parameters == {"id": 1}


# =============================================================================
# Interceptors
# =============================================================================


class Target:
    def query(self, value):
        return [value]

    def update(self, value):
        return 1

    def commit(self):
        return "committed"


class Tagging(Interceptor):
    def __init__(self, tag, calls):
        self.tag = tag
        self.calls = calls

    def intercept(self, invocation):
        self.calls.append(f"{self.tag}:{invocation.method}")
        return invocation.proceed()


class TestInterceptorChain:
    """Tests for InterceptorChain."""

    def test_last_registered_is_outermost(self):
        calls = []
        chain = InterceptorChain()
        chain.add_interceptor(Tagging("first", calls))
        chain.add_interceptor(Tagging("second", calls))

        assert chain.plugin_all(Target()).query("x") == ["x"]
        assert calls == ["second:query", "first:query"]

    def test_only_intercepted_methods_routed(self):
        calls = []
        chain = InterceptorChain()
        chain.add_interceptor(Tagging("only", calls))

        assert chain.plugin_all(Target()).commit() == "committed"
        assert calls == []

    def test_empty_chain_returns_target(self):
        target = Target()
        assert InterceptorChain().plugin_all(target) is target

    def test_frozen(self):
        chain = InterceptorChain()
        chain.freeze()
        with pytest.raises(FrozenConfigurationError):
            chain.add_interceptor(Tagging("late", []))


# =============================================================================
# Caches and database identity
# =============================================================================


class TestLruCache:
    """Tests for LruCache."""

    def test_put_get_remove(self):
        cache = LruCache("city")
        cache.put_object("k", [1])
        assert cache.get_object("k") == [1]
        assert cache.remove_object("k") == [1]
        assert cache.get_object("k") is None

    def test_evicts_least_recently_used(self):
        cache = LruCache("city", maxsize=2)
        cache.put_object("a", 1)
        cache.put_object("b", 2)
        cache.get_object("a")
        cache.put_object("c", 3)
        assert cache.get_object("b") is None
        assert cache.get_object("a") == 1
        assert len(cache) == 2

    def test_clear(self):
        cache = LruCache("city")
        cache.put_object("a", 1)
        cache.clear()
        assert len(cache) == 0


class TestVendorDatabaseIdProvider:
    """Tests for VendorDatabaseIdProvider."""

    def test_dialect_name_without_properties(self):
        assert VendorDatabaseIdProvider().get_database_id(create_engine("sqlite://")) == "sqlite"

    def test_mapped_properties(self):
        provider = VendorDatabaseIdProvider({"postgresql": "pg", "sqlite": "lite"})
        assert provider.get_database_id(create_engine("sqlite://")) == "lite"

    def test_unmatched_dialect(self):
        provider = VendorDatabaseIdProvider({"postgresql": "pg"})
        assert provider.get_database_id(create_engine("sqlite://")) is None


# =============================================================================
# Factories
# =============================================================================


class TestFactories:
    """Tests for the default object and reflector factories."""

    def test_object_factory_dataclass(self):
        city = DefaultObjectFactory().create(City, {"id": 1, "name": "Osaka"})
        assert city == City(id=1, name="Osaka")

    def test_object_factory_mapping(self):
        assert DefaultObjectFactory().create(dict, {"a": 1}) == {"a": 1}

    def test_object_factory_plain_class(self):
        class Plain:
            pass

        obj = DefaultObjectFactory().create(Plain, {"a": 1})
        assert obj.a == 1

    def test_reflector_matches_case_insensitively(self):
        reflector = DefaultReflectorFactory().find_for_class(City)
        assert reflector.find_property("NAME") == "name"
        assert reflector.find_property("countryid") is None
        assert reflector.find_property("countryid", use_camel_case_mapping=True) == "country_id"

    def test_reflector_cached(self):
        factory = DefaultReflectorFactory()
        assert factory.find_for_class(City) is factory.find_for_class(City)
        uncached = DefaultReflectorFactory(class_cache_enabled=False)
        assert uncached.find_for_class(City) is not uncached.find_for_class(City)

    def test_reflector_property_types(self):
        reflector = DefaultReflectorFactory().find_for_class(City)
        assert reflector.property_types["name"] is str
        # Optional hints are not concrete types
        assert "id" not in reflector.property_types


# =============================================================================
# Configuration
# =============================================================================


def make_statement(statement_id, resource="test"):
    return MappedStatement(
        id=statement_id,
        command_type=SqlCommandType.SELECT,
        sql_source=StaticSqlSource("SELECT 1"),
        resource=resource,
    )


class TestConfiguration:
    """Tests for Configuration."""

    def test_settings_copied(self):
        from sqlweave.config import CoreSettings

        configuration = Configuration(CoreSettings(cache_enabled=False, variables={"a": "b"}))
        assert configuration.cache_enabled is False
        assert configuration.variables == {"a": "b"}

    def test_driver_aliases_registered(self):
        configuration = Configuration()
        assert configuration.type_alias_registry.resolve_alias("raw") is RawLanguageDriver
        assert configuration.type_alias_registry.resolve_alias("xml") is XmlLanguageDriver

    def test_duplicate_statement(self):
        configuration = Configuration()
        configuration.add_mapped_statement(make_statement("ns.find", "A.xml"))
        with pytest.raises(MapperDocumentError, match="already contains value for ns.find"):
            configuration.add_mapped_statement(make_statement("ns.find", "B.xml"))

    def test_unknown_statement(self):
        with pytest.raises(BindingError, match="not found"):
            Configuration().get_mapped_statement("ns.missing")

    def test_duplicate_cache(self):
        configuration = Configuration()
        configuration.add_cache(LruCache("city"))
        with pytest.raises(ValueError, match="city"):
            configuration.add_cache(LruCache("city"))

    def test_freeze_blocks_every_mutation(self):
        configuration = Configuration()
        configuration.freeze()

        assert configuration.frozen
        with pytest.raises(FrozenConfigurationError):
            configuration.cache_enabled = False
        with pytest.raises(FrozenConfigurationError):
            configuration.add_cache(LruCache("city"))
        with pytest.raises(FrozenConfigurationError):
            configuration.add_mapped_statement(make_statement("ns.find"))
        with pytest.raises(FrozenConfigurationError):
            configuration.add_interceptor(MagicMock(spec=Interceptor))
        with pytest.raises(FrozenConfigurationError):
            configuration.type_converter_registry.register(MoneyConverter)
        with pytest.raises(FrozenConfigurationError):
            configuration.add_mapper(CityMapper)
        with pytest.raises(TypeError):
            configuration.variables["x"] = "y"

    def test_freeze_is_idempotent(self):
        configuration = Configuration()
        configuration.freeze()
        configuration.freeze()
        assert configuration.frozen
