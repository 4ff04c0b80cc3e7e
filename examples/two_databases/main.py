"""
Two Databases Example

This example builds two session factories from one YAML file:
1. "default": annotated CityMapper against the main database
2. "reporting": MailMapper bound from Mail.xml against a second database,
   with a shared LRU cache for its namespace

Run: python -m examples.two_databases.main
"""

import logging
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from sqlweave import (
    ApplicationEnvironment,
    BeanContext,
    ComponentPool,
    SessionTemplate,
    load_configurations,
    load_session_factories,
)
from sqlweave.registry import Cache, LruCache

from .mappers import City, CityMapper, MailMapper

HERE = Path(__file__).parent


# =============================================================================
# Databases
# =============================================================================


def create_database(*statements: str) -> Engine:
    engine = create_engine("sqlite://", poolclass=StaticPool)
    with engine.begin() as connection:
        for statement in statements:
            connection.execute(text(statement))
    return engine


def create_main_database() -> Engine:
    return create_database(
        "CREATE TABLE city (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, country_code TEXT)",
        "INSERT INTO city (name, country_code) VALUES ('Osaka', 'JP'), ('Berlin', 'DE')",
    )


def create_reporting_database() -> Engine:
    return create_database(
        "CREATE TABLE mail (id INTEGER PRIMARY KEY, address TEXT)",
        "INSERT INTO mail (id, address) VALUES (1, 'ops@example.com'), (2, 'dev@example.com')",
    )


# =============================================================================
# Main
# =============================================================================


def main():
    logging.basicConfig(level=logging.INFO)

    pool = (
        ComponentPool.builder()
        .register(Engine, create_main_database(), name="default")
        .register(Engine, create_reporting_database(), name="reporting")
        .register(Cache, LruCache("examples.two_databases.mappers.MailMapper", maxsize=64))
        .build()
    )
    environment = ApplicationEnvironment(resource_root=HERE / "resources")
    configs = load_configurations(HERE / "sqlweave.yaml")

    context = BeanContext()
    result = load_session_factories(configs, pool, environment, context)
    print(f"Built session factories: {sorted(result.factories)}")

    cities = context.get_bean(CityMapper, "default")
    tokyo = City(name="Tokyo", countryCode="JP")
    cities.add(tokyo)
    print(f"Inserted {tokyo}")
    for city in cities.find_all():
        print(f"  {city.id}: {city.name} ({city.countryCode})")
    print(f"Greeting variable: {cities.greeting()}")

    mail = context.get_bean(MailMapper, "reporting")
    print(f"Reporting mailboxes ({mail.count()}):")
    for entry in mail.find_all():
        print(f"  {entry.address}")

    # Statements can also be run by id through the published template
    template = context.get_bean(SessionTemplate, "reporting")
    print(template.select_one("examples.two_databases.mappers.MailMapper.count"))


if __name__ == "__main__":
    main()
