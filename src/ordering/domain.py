"""Ordering bounded context: order placement, stock ledger and rewards.

Turns an untrusted cart submission into a priced, stock-consistent order
record. Orders, line items, promotions and reward records are Protean
aggregates; product stock lives in the catalogue database and is only ever
changed through the atomic stock ledger.
"""

import structlog
from protean.domain import Domain

from ordering.utils.logging import configure_logging

# Configure logging for the application
configure_logging()

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
