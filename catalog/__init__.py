"""Configurable-product catalog.

Everything that touches storage for the configurator:
- SQLAlchemy tables and pydantic value types (``catalog.models``)
- Entity repositories on top of ``engine.repository.BaseRepository``
- Selection-set editing helpers
- ConfigurationService: available options, validation, pricing, persistence
- CartService: add-to-cart that refuses invalid configurations
"""
