from protean.domain import Domain
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from ordering.catalogue.products import catalogue_metadata
from ordering.config import catalogue_database_uri


def setup_db(domain: Domain):
    """Setup database schema for the domain's relational providers"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])

                # Touch each repository's _dao so the models are registered with SQLAlchemy
                for _, aggregate_record in domain.registry.aggregates.items():
                    if aggregate_record.cls.meta_.provider == provider.name:
                        domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

                provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)


def catalogue_engine(uri: str | None = None, **engine_options) -> Engine:
    """Engine for the catalogue/stock database (``CATALOGUE_DATABASE_URI``)."""
    return create_engine(uri or catalogue_database_uri(), **engine_options)


def create_catalogue_schema(engine: Engine):
    catalogue_metadata.create_all(engine)


def drop_catalogue_schema(engine: Engine):
    catalogue_metadata.drop_all(engine)
