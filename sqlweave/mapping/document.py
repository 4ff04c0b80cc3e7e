"""
Mapper Documents.

Parses file-based mapper definitions against a populated registry set.

Document format:
    <mapper namespace="app.mappers.mail.MailMapper">
        <cache-ref namespace="mail"/>
        <sql id="columns">id, address</sql>
        <select id="find_all" resultType="Mail">
            SELECT <include refid="columns"/> FROM mail
        </select>
        <select id="find_city" resultType="City">
            SELECT id, name, country_id FROM city WHERE id = #{id}
            <association property="country" column="country_id"
                         select="app.mappers.country.CountryMapper.find_by_id"/>
        </select>
        <select id="db_name" resultType="string" databaseId="sqlite">SELECT 'lite'</select>
        <insert id="add">INSERT INTO mail (address) VALUES (#{address})</insert>
    </mapper>

Statement attributes: `id`, `resultType`, `databaseId`, `lang`, `useCache`,
`flushCache`. Aliases, caches and language drivers referenced here must
already be registered, so documents are parsed last.
"""

from __future__ import annotations

import importlib
import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Any, Protocol

from sqlweave.errors import MapperDocumentError, SqlWeaveError

from .annotations import is_interface
from .statements import Association, MappedStatement, SqlCommandType

if TYPE_CHECKING:
    from sqlweave.registry.configuration import Configuration
    from sqlweave.registry.scripting import LanguageDriver

logger = logging.getLogger(__name__)

_COMMANDS = {command.value: command for command in SqlCommandType}


class DocumentResource(Protocol):
    @property
    def location(self) -> str: ...

    def read_bytes(self) -> bytes: ...


class MapperDocumentParser:
    """
    Parses one mapper document into a registry set.

    Example:
        MapperDocumentParser(configuration, resource).parse()
    """

    def __init__(self, configuration: Configuration, resource: DocumentResource):
        self._configuration = configuration
        self._resource = resource
        self._location = resource.location

    def parse(self) -> None:
        """
        Parse the document.

        Raises:
            MapperDocumentError: If the document is malformed or references
                an unknown alias, cache, fragment or language driver
        """
        configuration = self._configuration
        if self._location in configuration.loaded_resources:
            logger.debug(f"[document] Skipping already loaded resource: {self._location}")
            return

        try:
            root = ET.fromstring(self._resource.read_bytes())
        except ET.ParseError as e:
            raise self._error(f"Error parsing mapper document. Cause: {e}") from e
        except OSError as e:
            raise self._error(f"Error reading mapper document. Cause: {e}") from e

        if root.tag != "mapper":
            raise self._error(f"Root element must be <mapper>, found <{root.tag}>")
        namespace = (root.get("namespace") or "").strip()
        if not namespace:
            raise self._error("Mapper's namespace cannot be empty")

        try:
            self._parse_elements(root, namespace)
            configuration.loaded_resources.append(self._location)
            self._bind_mapper_for_namespace(namespace)
        except MapperDocumentError as e:
            if e.resource is None:
                e.resource = self._location
            raise
        except SqlWeaveError as e:
            raise self._error(str(e)) from e
        except (KeyError, TypeError, ValueError) as e:
            raise self._error(f"Error parsing mapper document. Cause: {e}") from e

        logger.debug(f"[document] Parsed mapper document: {self._location}")

    # ==================== Elements ====================

    def _parse_elements(self, root: ET.Element, namespace: str) -> None:
        cache = None
        for element in root.findall("cache-ref"):
            ref = element.get("namespace", "")
            cache = self._configuration.cache_for_namespace(ref)
            if cache is None:
                raise self._error(f"No cache for namespace '{ref}' could be found.")
        if cache is None:
            cache = self._configuration.cache_for_namespace(namespace)

        for element in root.findall("sql"):
            fragment_id = _qualify(namespace, _required(element, "id"))
            self._configuration.sql_fragments[fragment_id] = element

        statements = [element for element in root if element.tag in _COMMANDS]
        unknown = [
            element.tag
            for element in root
            if element.tag not in _COMMANDS and element.tag not in ("sql", "cache-ref")
        ]
        if unknown:
            raise self._error(f"Unknown element(s) in mapper document: {unknown}")

        database_id = self._configuration.database_id
        if database_id is not None:
            for element in statements:
                if element.get("databaseId") == database_id:
                    self._parse_statement(element, namespace, cache)
        for element in statements:
            if element.get("databaseId") is None:
                statement_id = _qualify(namespace, _required(element, "id"))
                existing = self._configuration.mapped_statements.get(statement_id)
                # A vendor-specific statement replaces the generic one; any other clash raises
                if existing is not None and existing.database_id is not None:
                    continue
                self._parse_statement(element, namespace, cache)

    def _parse_statement(self, element: ET.Element, namespace: str, cache: Any) -> None:
        configuration = self._configuration
        command_type = _COMMANDS[element.tag]
        statement_id = _qualify(namespace, _required(element, "id"))
        is_select = command_type is SqlCommandType.SELECT

        associations: list[Association] = []
        script = self._build_script(element, namespace, associations)
        driver = self._language_driver(element.get("lang"))
        configuration.add_mapped_statement(
            MappedStatement(
                id=statement_id,
                command_type=command_type,
                sql_source=driver.create_sql_source(configuration, script),
                result_type=configuration.type_alias_registry.resolve_alias(element.get("resultType")),
                resource=self._location,
                cache=cache,
                database_id=element.get("databaseId"),
                flush_cache_required=_bool(element.get("flushCache"), not is_select),
                use_cache=_bool(element.get("useCache"), is_select),
                associations=tuple(associations),
            )
        )

    def _build_script(
        self,
        element: ET.Element,
        namespace: str,
        associations: list[Association],
        depth: int = 0,
    ) -> str:
        if depth > 8:
            raise self._error("Circular <include> references detected")
        parts = [element.text or ""]
        for child in element:
            if child.tag == "include":
                refid = _required(child, "refid")
                fragment = self._configuration.sql_fragments.get(_qualify(namespace, refid))
                if fragment is None:
                    raise self._error(f"Could not find SQL statement to include with refid '{refid}'")
                parts.append(self._build_script(fragment, namespace, associations, depth + 1))
            elif child.tag == "association":
                associations.append(
                    Association(
                        property=_required(child, "property"),
                        select=_qualify(namespace, _required(child, "select")),
                        column=_required(child, "column"),
                        lazy=child.get("fetchType", "lazy") != "eager",
                    )
                )
            else:
                raise self._error(f"Unknown element <{child.tag}> in statement")
            parts.append(child.tail or "")
        return "".join(parts)

    def _language_driver(self, lang: str | None) -> LanguageDriver:
        registry = self._configuration.language_registry
        if not lang:
            return registry.default_driver
        driver_class = self._configuration.type_alias_registry.resolve_alias(lang)
        driver = registry.get_driver(driver_class)
        if driver is None:
            registry.register(driver_class)
            driver = registry.get_driver(driver_class)
        return driver

    # ==================== Namespace binding ====================

    def _bind_mapper_for_namespace(self, namespace: str) -> None:
        module_name, _, attr = namespace.rpartition(".")
        if not module_name:
            return
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            logger.debug(f"[document] Namespace '{namespace}' is not an importable interface")
            return
        interface = getattr(module, attr, None)
        if is_interface(interface) and not self._configuration.has_mapper(interface):
            self._configuration.add_mapper(interface)
            logger.debug(f"[document] Bound mapper interface for namespace: {namespace}")

    def _error(self, message: str) -> MapperDocumentError:
        return MapperDocumentError(message, resource=self._location)


def _qualify(namespace: str, ref: str) -> str:
    return ref if "." in ref else f"{namespace}.{ref}"


def _required(element: ET.Element, attribute: str) -> str:
    value = element.get(attribute)
    if not value:
        raise MapperDocumentError(f"<{element.tag}> requires the '{attribute}' attribute")
    return value


def _bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() == "true"
