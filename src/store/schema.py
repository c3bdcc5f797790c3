"""Relational schema for facilities, rollups, and ingest metadata.

Tables are declared with SQLAlchemy Core so the same definitions
serve SQLite for local runs and PostgreSQL in production.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)

from core.constants import (
    CITIES_TABLE,
    FACILITIES_TABLE,
    INGEST_METADATA_TABLE,
    STATES_TABLE,
)

metadata = MetaData()

facilities = Table(
    FACILITIES_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("external_id", String(64), nullable=False, unique=True),
    Column("name", Text, nullable=False),
    Column("name_alt", Text),
    Column("slug", String(192), nullable=False, unique=True),
    Column("street1", Text),
    Column("street2", Text),
    Column("city", Text, nullable=False),
    Column("city_slug", String(128), nullable=False),
    Column("state", String(8), nullable=False),
    Column("state_name", Text, nullable=False),
    Column("zip", String(16)),
    Column("phone", String(64)),
    Column("intake_phone", String(64)),
    Column("hotline", String(64)),
    Column("website", Text),
    Column("latitude", Float),
    Column("longitude", Float),
    Column("facility_type", String(64)),
    Column("services", JSON),
    Column("type_of_care", JSON),
    Column("service_settings", JSON),
    Column("payment_options", JSON),
    Column("age_groups", JSON),
    Column("special_programs", JSON),
    Column("quality_score", Float, nullable=False),
    Column("is_indexable", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
    Index("idx_facilities_state", "state"),
    Index("idx_facilities_city_slug", "state", "city_slug"),
    Index("idx_facilities_indexable", "is_indexable"),
)

states = Table(
    STATES_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("code", String(8), nullable=False, unique=True),
    Column("name", Text, nullable=False),
    Column("slug", String(128), nullable=False),
    Column("facility_count", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

cities = Table(
    CITIES_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("slug", String(128), nullable=False),
    Column("state_code", String(8), nullable=False),
    Column("facility_count", Integer, nullable=False, default=0),
    Column("latitude", Float),
    Column("longitude", Float),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("slug", "state_code", name="uq_cities_slug_state"),
    Index("idx_cities_state", "state_code"),
)

ingest_metadata = Table(
    INGEST_METADATA_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("source_name", Text, nullable=False),
    Column("source_url", Text, nullable=False),
    Column("data_period", Text, nullable=False),
    Column("record_count", Integer, nullable=False, default=0),
    Column("last_updated", DateTime(timezone=True)),
    Column("last_checked_at", DateTime(timezone=True)),
)
