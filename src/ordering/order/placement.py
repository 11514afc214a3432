"""Order placement: turns an untrusted order request into a committed order.

A placement attempt moves through these stages:

    START → TOTALS_COMPUTED → FRAUD_CHECKED → STOCK_PRECHECKED
          → HEADER_WRITTEN → ITEMS_WRITTEN → STOCK_DECREMENTED → COMMITTED

Everything before HEADER_WRITTEN is free of side effects, so validation
errors need no cleanup. The order store (protean repositories) and the stock
store (SQLAlchemy) are separate back ends, so a failure after the header is
written is undone by compensation: stock already decremented is restored,
written line items are deleted, then the header is deleted.

Post-commit work (promotion usage, rewards) is queued and drained after
COMMITTED; none of it can fail the order.
"""

import math
from collections import Counter
from enum import Enum

import structlog
from protean.utils.globals import current_domain

from ordering.catalogue.lookup import Catalogue, CatalogPriceLookup
from ordering.catalogue.price_cache import PriceCache
from ordering.catalogue.products import ProductCatalogue
from ordering.config import CheckoutPolicy, RewardPolicy
from ordering.errors import InsufficientStock, PersistenceFailure, ProductNotFound
from ordering.order.events import OrderPlaced
from ordering.order.line_item import OrderLineItem
from ordering.order.order import Order, generate_order_number
from ordering.order.post_commit import PostCommitQueue
from ordering.order.schemas import OrderRequest, OrderSummary
from ordering.pricing.fraud import validate_order_bounds
from ordering.pricing.totals import PricedOrder, compute_totals
from ordering.promotions.promotion import PromotionEvaluator, RepositoryPromotionEvaluator
from ordering.rewards.pipeline import RewardPipeline
from ordering.stock.ledger import StockLedger
from ordering.utils.db import catalogue_engine
from ordering.utils.logging import bound_context

logger = structlog.get_logger(__name__)


class PlacementStage(Enum):
    START = "start"
    TOTALS_COMPUTED = "totals_computed"
    FRAUD_CHECKED = "fraud_checked"
    STOCK_PRECHECKED = "stock_prechecked"
    HEADER_WRITTEN = "header_written"
    ITEMS_WRITTEN = "items_written"
    STOCK_DECREMENTED = "stock_decremented"
    COMMITTED = "committed"


class OrderPlacementService:
    def __init__(
        self,
        catalogue: Catalogue,
        ledger: StockLedger,
        promotions: PromotionEvaluator | None = None,
        *,
        policy: CheckoutPolicy | None = None,
        price_cache: PriceCache | None = None,
        rewards: RewardPipeline | None = None,
    ):
        self.policy = policy or CheckoutPolicy()
        self.ledger = ledger
        self.promotions = promotions
        self.price_cache = price_cache or PriceCache(
            ttl_seconds=self.policy.price_cache_ttl_seconds,
            max_entries=self.policy.price_cache_max_entries,
        )
        self.lookup = CatalogPriceLookup(catalogue, self.price_cache)
        self.rewards = rewards or RewardPipeline()

    @classmethod
    def from_env(cls, promotions: PromotionEvaluator | None = None) -> "OrderPlacementService":
        """Service wired from ``CATALOGUE_DATABASE_URI`` and the ``CHECKOUT_*``/``REWARDS_*`` variables."""
        engine = catalogue_engine()
        return cls(
            ProductCatalogue(engine),
            StockLedger(engine),
            promotions or RepositoryPromotionEvaluator(),
            policy=CheckoutPolicy.from_env(),
            rewards=RewardPipeline(RewardPolicy.from_env()),
        )

    def create_order(self, request, owner_id=None) -> OrderSummary:
        """Place an order and return its summary.

        Raises:
            ProductNotFound, InvalidQuantity, TooManyItems, TotalTooLow,
            TotalTooHigh: the request was rejected before anything was written.
            InsufficientStock: not enough stock; anything written was rolled back.
            PersistenceFailure: a write failed; rollback was attempted.
            pydantic.ValidationError: the request does not fit ``OrderRequest``.
        """
        if not isinstance(request, OrderRequest):
            request = OrderRequest.model_validate(request)

        order_number = generate_order_number(self.policy.order_number_prefix)
        with bound_context(order_number=order_number, owner_id=str(owner_id) if owner_id else None):
            priced = compute_totals(
                request.items,
                request.promo_code,
                lookup=self.lookup,
                promotions=self.promotions,
                policy=self.policy,
            )
            logger.debug("Order placement stage reached", stage=PlacementStage.TOTALS_COMPUTED.value)
            self._log_client_anomalies(request, priced)

            validate_order_bounds(priced.items, priced.totals.total, self.policy)
            logger.debug("Order placement stage reached", stage=PlacementStage.FRAUD_CHECKED.value)

            self._precheck_stock(priced)
            logger.debug("Order placement stage reached", stage=PlacementStage.STOCK_PRECHECKED.value)

            order = self._write_header(request, priced, order_number, owner_id)
            logger.debug("Order placement stage reached", stage=PlacementStage.HEADER_WRITTEN.value)

            items = self._write_items(order, priced)
            logger.debug("Order placement stage reached", stage=PlacementStage.ITEMS_WRITTEN.value)

            self._decrement_stock(order, items, priced)
            logger.debug("Order placement stage reached", stage=PlacementStage.STOCK_DECREMENTED.value)

            logger.info(
                "Order created",
                order_id=str(order.id),
                total=order.totals.total,
                item_count=len(priced.items),
                stage=PlacementStage.COMMITTED.value,
            )

            self._run_post_commit(order, priced)

        return OrderSummary(
            id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            total=order.totals.total,
            created_at=order.created_at,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def _log_client_anomalies(self, request: OrderRequest, priced: PricedOrder) -> None:
        for requested, resolved in zip(request.items, priced.items, strict=True):
            if requested.price is not None and not math.isclose(
                requested.price, resolved.authoritative_price, abs_tol=0.01
            ):
                logger.info(
                    "Client price differs from catalogue price",
                    product_id=resolved.product_id,
                    client_price=requested.price,
                    server_price=resolved.authoritative_price,
                )
        if request.total is not None and not math.isclose(request.total, priced.totals.total, abs_tol=0.01):
            logger.info(
                "Client total differs from computed total",
                client_total=request.total,
                server_total=priced.totals.total,
            )

    def _precheck_stock(self, priced: PricedOrder) -> None:
        """Advisory check; the conditional decrement remains the authority."""
        requested = Counter()
        for item in priced.items:
            requested[item.product_id] += item.quantity

        for product_id, quantity in requested.items():
            available = self.ledger.available(product_id)
            if available is None:
                raise ProductNotFound(product_id)
            if available < quantity:
                logger.warning(
                    "Insufficient stock at pre-check",
                    product_id=product_id,
                    available=available,
                    requested=quantity,
                )
                raise InsufficientStock(product_id, quantity, available)

    def _write_header(self, request: OrderRequest, priced: PricedOrder, order_number, owner_id) -> Order:
        attribution = request.attribution.model_dump(exclude_none=True) if request.attribution else None
        try:
            order = Order.create(
                order_number=order_number,
                owner_id=str(owner_id) if owner_id else None,
                totals={
                    "subtotal": priced.totals.subtotal,
                    "shipping": priced.totals.shipping,
                    "discount": priced.totals.discount,
                    "total": priced.totals.total,
                },
                shipping=request.shipping.model_dump(exclude={"accept_terms"}),
                promo_code=priced.promo_code,
                attribution=attribution or None,
                legal_consent_version=(
                    self.policy.legal_consent_version if request.shipping.accept_terms else None
                ),
            )
            current_domain.repository_for(Order).add(order)
        except Exception as exc:
            logger.error("Failed to create order header", error=str(exc), exc_info=True)
            raise PersistenceFailure(PlacementStage.HEADER_WRITTEN.value, order_number) from exc
        return order

    def _write_items(self, order: Order, priced: PricedOrder) -> list[OrderLineItem]:
        repo = current_domain.repository_for(OrderLineItem)
        written = []
        try:
            for resolved in priced.items:
                item = OrderLineItem(
                    order_id=str(order.id),
                    product_id=resolved.product_id,
                    quantity=resolved.quantity,
                    unit_price=resolved.authoritative_price,
                )
                repo.add(item)
                written.append(item)

            items_total = sum(item.line_total for item in written)
            if not math.isclose(items_total, priced.totals.subtotal, rel_tol=1e-9, abs_tol=1e-9):
                raise ValueError(
                    f"Line items total {items_total} does not match computed subtotal {priced.totals.subtotal}"
                )
        except Exception as exc:
            logger.error("Failed to create order items", error=str(exc), exc_info=True)
            self._rollback(order, written, decremented=[])
            raise PersistenceFailure(PlacementStage.ITEMS_WRITTEN.value, order.order_number) from exc
        return written

    def _decrement_stock(self, order: Order, items: list[OrderLineItem], priced: PricedOrder) -> None:
        decremented = []
        try:
            for resolved in priced.items:
                self.ledger.decrement(resolved.product_id, resolved.quantity)
                decremented.append((resolved.product_id, resolved.quantity))
        except InsufficientStock:
            logger.warning("Stock decrement failed, rolling back order", decremented=len(decremented))
            self._rollback(order, items, decremented)
            raise
        except Exception as exc:
            logger.error("Stock decrement error, rolling back order", error=str(exc), exc_info=True)
            self._rollback(order, items, decremented)
            raise PersistenceFailure(PlacementStage.STOCK_DECREMENTED.value, order.order_number) from exc

    def _rollback(self, order: Order, items, decremented) -> None:
        """Undo a partial placement. Errors here are logged, never raised."""
        for product_id, quantity in reversed(decremented):
            try:
                self.ledger.restore(product_id, quantity)
            except Exception as exc:
                logger.error(
                    "Failed to restore stock during rollback",
                    product_id=product_id,
                    quantity=quantity,
                    error=str(exc),
                    exc_info=True,
                )

        item_dao = current_domain.repository_for(OrderLineItem)._dao
        for item in items:
            try:
                item_dao.delete(item)
            except Exception as exc:
                logger.error(
                    "Failed to delete order item during rollback",
                    item_id=str(item.id),
                    error=str(exc),
                    exc_info=True,
                )

        try:
            current_domain.repository_for(Order)._dao.delete(order)
        except Exception as exc:
            logger.error("Failed to delete order header during rollback", error=str(exc), exc_info=True)
        else:
            logger.info("Order rolled back", order_id=str(order.id))

    def _run_post_commit(self, order: Order, priced: PricedOrder) -> None:
        queue = PostCommitQueue()
        if priced.promotion_id and self.promotions is not None:
            queue.enqueue("promotion_usage", self.promotions.increment_usage, priced.promotion_id)

        event = OrderPlaced(
            order_id=str(order.id),
            order_number=order.order_number,
            owner_id=order.owner_id,
            total=order.totals.total,
            promotion_id=priced.promotion_id,
            placed_at=order.created_at,
        )
        self.rewards.schedule(queue, event)

        outcomes = queue.drain()
        failed = [outcome.name for outcome in outcomes if not outcome.succeeded]
        if failed:
            logger.warning("Post-commit tasks failed", failed_tasks=failed)


_service_instance = None


def get_placement_service() -> OrderPlacementService:
    """Return the placement service used by the command handlers (singleton).

    Built from the environment on first use; see ``OrderPlacementService.from_env``.
    """
    global _service_instance
    if _service_instance is None:
        _service_instance = OrderPlacementService.from_env()
    return _service_instance


def reset_placement_service():
    """Reset the placement service singleton (useful for testing)."""
    global _service_instance
    _service_instance = None
