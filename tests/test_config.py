"""
Tests for declarative configuration.

Tests for:
- CoreSettings (excluded keys, executor type, trigger methods)
- NamedConfiguration (kebab/snake keys, CSV lists, dotted type paths)
- deep_merge
- load_configurations (YAML, overrides, environment overlay)
"""

import logging

import pytest
from pydantic import ValidationError

from sqlweave.config import (
    CoreSettings,
    ExecutorType,
    NamedConfiguration,
    deep_merge,
    load_configurations,
    read_yaml,
)
from sqlweave.config.schemas import import_type
from sqlweave.errors import ConfigurationError
from sqlweave.registry import RawLanguageDriver
from sqlweave_fixtures.domain import City, Entity
from sqlweave_fixtures.mappers.city import CityMapper

# =============================================================================
# Core settings
# =============================================================================


class TestCoreSettings:
    """Tests for CoreSettings."""

    def test_defaults(self):
        settings = CoreSettings()
        assert settings.default_executor_type is ExecutorType.SIMPLE
        assert settings.cache_enabled is True
        assert settings.lazy_loading_enabled is False
        assert settings.variables == {}
        assert settings.lazy_load_trigger_methods == frozenset(
            {"__eq__", "__hash__", "__repr__", "__str__"}
        )

    def test_kebab_case_keys(self):
        settings = CoreSettings.model_validate(
            {"map-underscore-to-camel-case": True, "default-fetch-size": 50}
        )
        assert settings.map_underscore_to_camel_case is True
        assert settings.default_fetch_size == 50

    def test_executor_type_is_case_insensitive(self):
        assert CoreSettings(default_executor_type="batch").default_executor_type is ExecutorType.BATCH

    def test_trigger_methods_accept_csv(self):
        settings = CoreSettings(lazy_load_trigger_methods="__eq__, __str__")
        assert settings.lazy_load_trigger_methods == frozenset({"__eq__", "__str__"})

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            CoreSettings.model_validate({"cache-enabeld": False})

    def test_excluded_keys_ignored_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="sqlweave.config.schemas"):
            settings = CoreSettings.model_validate(
                {"object-factory": "x.Y", "environment": "prod", "cache-enabled": False}
            )
        assert settings.cache_enabled is False
        assert "object-factory" in caplog.text
        assert "environment" in caplog.text
        assert not hasattr(settings, "object_factory")

    def test_frozen(self):
        settings = CoreSettings()
        with pytest.raises(ValidationError):
            settings.cache_enabled = False

    def test_fetch_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            CoreSettings(default_fetch_size=0)


# =============================================================================
# Named configuration
# =============================================================================


class TestNamedConfiguration:
    """Tests for NamedConfiguration."""

    def test_minimal(self):
        config = NamedConfiguration(name="default")
        assert config.mappers == []
        assert config.mapper_packages == []
        assert config.type_alias_super_type is object
        assert config.data_source_name is None
        assert config.resolved_data_source_name == "default"

    def test_name_required(self):
        with pytest.raises(ValidationError):
            NamedConfiguration.model_validate({})

    def test_csv_lists(self):
        config = NamedConfiguration.model_validate(
            {
                "name": "default",
                "mapper-packages": "app.city, app.country",
                "mapper-xml-files": "Mail.xml,Phone.xml",
            }
        )
        assert config.mapper_packages == ["app.city", "app.country"]
        assert config.mapper_xml_files == ["Mail.xml", "Phone.xml"]

    def test_dotted_type_paths(self):
        config = NamedConfiguration.model_validate(
            {
                "name": "default",
                "mappers": "sqlweave_fixtures.mappers.city.CityMapper",
                "type-aliases": ["sqlweave_fixtures.domain.City"],
                "type-alias-super-type": "sqlweave_fixtures.domain.Entity",
                "default-scripting-language-driver": "sqlweave.registry.RawLanguageDriver",
            }
        )
        assert config.mappers == [CityMapper]
        assert config.type_aliases == [City]
        assert config.type_alias_super_type is Entity
        assert config.default_scripting_language_driver is RawLanguageDriver

    def test_classes_accepted_directly(self):
        config = NamedConfiguration(name="default", mappers=[CityMapper])
        assert config.mappers == [CityMapper]

    def test_unimportable_type_rejected(self):
        with pytest.raises(ValidationError, match="no_such_module"):
            NamedConfiguration(name="default", type_aliases=["no_such_module.Thing"])

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            NamedConfiguration.model_validate({"name": "default", "mapper-pakages": ["app"]})

    def test_blank_data_source_name_falls_back_to_name(self):
        config = NamedConfiguration(name="2nd", data_source_name="  ")
        assert config.data_source_name is None
        assert config.resolved_data_source_name == "2nd"

    def test_explicit_data_source_name(self):
        config = NamedConfiguration(name="2nd", data_source_name="reporting")
        assert config.resolved_data_source_name == "reporting"

    def test_nested_core_settings(self):
        config = NamedConfiguration.model_validate(
            {"name": "default", "configuration": {"variables": {"schema": "app"}}}
        )
        assert config.configuration.variables == {"schema": "app"}


class TestImportType:
    """Tests for import_type."""

    def test_non_string_unchanged(self):
        assert import_type(City) is City

    def test_requires_dotted_path(self):
        with pytest.raises(ValueError, match="not a dotted import path"):
            import_type("City")

    def test_missing_attribute(self):
        with pytest.raises(ValueError, match="has no attribute"):
            import_type("sqlweave_fixtures.domain.Nope")


# =============================================================================
# Deep merge
# =============================================================================


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_merge(self):
        base = {"default": {"configuration": {"cache_enabled": True, "log_prefix": "a."}}}
        override = {"default": {"configuration": {"cache_enabled": False}}}
        merged = deep_merge(base, override)
        assert merged == {"default": {"configuration": {"cache_enabled": False, "log_prefix": "a."}}}

    def test_lists_replaced(self):
        merged = deep_merge({"packages": ["a", "b"]}, {"packages": ["c"]})
        assert merged == {"packages": ["c"]}

    def test_inputs_not_mutated(self):
        base = {"a": {"b": 1}}
        override = {"a": {"c": 2}}
        deep_merge(base, override)
        assert base == {"a": {"b": 1}}
        assert override == {"a": {"c": 2}}

    def test_type_conflict(self):
        with pytest.raises(ConfigurationError, match="default.configuration"):
            deep_merge({"default": {"configuration": {"x": 1}}}, {"default": {"configuration": "x"}})


# =============================================================================
# Loader
# =============================================================================

YAML_DOCUMENT = """\
sqlweave:
  default:
    mapper-packages:
      - sqlweave_fixtures.mappers.city
      - sqlweave_fixtures.mappers.country
    configuration:
      map-underscore-to-camel-case: true
      variables:
        database-name: lite
  2nd:
    data-source-name: reporting
    mapper-xml-base-paths: [root/mail, root/phone]
    mapper-xml-files: [Mail.xml, Phone.xml]
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "sqlweave.yaml"
    path.write_text(YAML_DOCUMENT, encoding="utf-8")
    return path


class TestReadYaml:
    """Tests for read_yaml."""

    def test_unwraps_root_key(self, config_file):
        data = read_yaml(config_file)
        assert list(data) == ["default", "2nd"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            read_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("sqlweave: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            read_yaml(path)

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            read_yaml(path)


class TestLoadConfigurations:
    """Tests for load_configurations."""

    def test_from_yaml_file(self, config_file):
        configs = load_configurations(config_file, environ={})
        assert list(configs) == ["default", "2nd"]

        default = configs["default"]
        assert default.name == "default"
        assert default.mapper_packages == [
            "sqlweave_fixtures.mappers.city",
            "sqlweave_fixtures.mappers.country",
        ]
        assert default.configuration.map_underscore_to_camel_case is True
        # Variable names are user data and keep their spelling
        assert default.configuration.variables == {"database-name": "lite"}

        second = configs["2nd"]
        assert second.resolved_data_source_name == "reporting"
        assert second.mapper_xml_files == ["Mail.xml", "Phone.xml"]

    def test_from_mapping_without_root_key(self):
        configs = load_configurations({"default": {"mapper-packages": ["app"]}}, environ={})
        assert configs["default"].mapper_packages == ["app"]

    def test_empty_body(self):
        configs = load_configurations({"sqlweave": {"default": None}}, environ={})
        assert configs["default"].mappers == []

    def test_no_source(self):
        assert load_configurations(environ={}) == {}

    def test_body_must_be_mapping(self):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_configurations({"default": ["app"]}, environ={})

    def test_overrides_deep_merged(self, config_file):
        configs = load_configurations(
            config_file,
            overrides={"default": {"configuration": {"cache-enabled": False}}},
            environ={},
        )
        settings = configs["default"].configuration
        assert settings.cache_enabled is False
        assert settings.map_underscore_to_camel_case is True

    def test_environment_overlay(self, config_file):
        environ = {
            "SQLWEAVE__DEFAULT__MAPPER_PACKAGES": "sqlweave_fixtures.mappers.region",
            "SQLWEAVE__DEFAULT__CONFIGURATION__CACHE_ENABLED": "false",
            "SQLWEAVE__DEFAULT__CONFIGURATION__VARIABLES__SCHEMA": "app",
            "UNRELATED": "value",
        }
        configs = load_configurations(config_file, environ=environ)
        default = configs["default"]
        assert default.mapper_packages == ["sqlweave_fixtures.mappers.region"]
        assert default.configuration.cache_enabled is False
        assert default.configuration.variables == {"database-name": "lite", "schema": "app"}

    def test_environment_names_match_case_insensitively(self):
        configs = load_configurations(
            {"Reporting": {}},
            environ={"SQLWEAVE__REPORTING__DATA_SOURCE_NAME": "warehouse"},
        )
        assert list(configs) == ["Reporting"]
        assert configs["Reporting"].data_source_name == "warehouse"

    def test_environment_can_add_configuration(self):
        configs = load_configurations(
            {"default": {}},
            environ={"SQLWEAVE__AUDIT__MAPPER_PACKAGES": "app.audit"},
        )
        assert set(configs) == {"default", "audit"}
        assert configs["audit"].mapper_packages == ["app.audit"]

    def test_environment_variable_without_key_ignored(self):
        configs = load_configurations({"default": {}}, environ={"SQLWEAVE__DEFAULT": "x"})
        assert list(configs) == ["default"]

    def test_invalid_key_raises_validation_error(self):
        with pytest.raises(ValidationError):
            load_configurations({"default": {"no-such-key": 1}}, environ={})
