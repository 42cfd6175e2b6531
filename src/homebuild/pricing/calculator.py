"""Pure pricing calculator.

Every intermediate amount is rounded to the cent (half-up) right after the
arithmetic step that produced it so that long option lists cannot drift.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from homebuild.catalog import CatalogService
from homebuild.domain import (
    CatalogModel,
    DeliveryQuote,
    DeliveryStatus,
    Option,
    OptionId,
    PricingBreakdown,
    Selections,
    TaxPolicy,
)
from homebuild.utils.money import ZERO, round_cents

DEFAULT_TAX_POLICY = TaxPolicy()


def _delivery_component(
    delivery_fee: Decimal | None,
    *,
    authenticated: bool,
    delivery_status: DeliveryStatus | None,
) -> tuple[Decimal, Decimal | None, DeliveryStatus]:
    if not authenticated:
        return ZERO, None, DeliveryStatus.NOT_APPLICABLE
    if delivery_fee is None:
        if delivery_status is DeliveryStatus.CALCULATING:
            return ZERO, None, DeliveryStatus.CALCULATING
        return ZERO, None, DeliveryStatus.UNAVAILABLE
    fee = round_cents(delivery_fee)
    return fee, fee, DeliveryStatus.AVAILABLE


def compute_pricing(
    model: CatalogModel | None,
    options: Iterable[Option],
    package_key: str | None,
    delivery_fee: Decimal | None,
    *,
    policy: TaxPolicy = DEFAULT_TAX_POLICY,
    authenticated: bool = True,
    delivery_status: DeliveryStatus | None = None,
) -> PricingBreakdown:
    """Compute the price breakdown for a model and its selections.

    ``delivery_fee`` of ``None`` means the fee is not known yet. It then adds
    nothing to taxes or total, the breakdown reports ``delivery=None`` and the
    total is not final. Anonymous callers never see delivery in the total.
    """

    delivery_amount, reported_delivery, status = _delivery_component(
        delivery_fee,
        authenticated=authenticated,
        delivery_status=delivery_status,
    )
    if model is None:
        return PricingBreakdown(tax_rate=policy.rate, delivery_status=status)

    base = round_cents(model.base_price)

    options_total = ZERO
    seen: set[str] = set()
    for option in options:
        if option.id in seen:
            continue
        seen.add(option.id)
        options_total = round_cents(options_total + round_cents(option.price))

    package = model.find_package(package_key)
    package_delta = round_cents(package.price_delta) if package is not None else ZERO

    subtotal = round_cents(base + options_total + package_delta)
    if subtotal < ZERO:
        subtotal = ZERO

    taxable = round_cents(subtotal + delivery_amount) if policy.taxes_delivery else subtotal
    taxes = round_cents(taxable * policy.rate)
    total = round_cents(subtotal + delivery_amount + taxes)

    return PricingBreakdown(
        base=base,
        options=options_total,
        package=package_delta,
        subtotal=subtotal,
        delivery=reported_delivery,
        taxes=taxes,
        total=total,
        tax_rate=policy.rate,
        delivery_status=status,
    )


def price_selections(
    catalog: CatalogService,
    model_id: str,
    selections: Selections,
    delivery: DeliveryQuote | None,
    *,
    policy: TaxPolicy = DEFAULT_TAX_POLICY,
    authenticated: bool = True,
) -> tuple[PricingBreakdown, tuple[OptionId, ...]]:
    """Resolve catalog references and price them.

    Returns the breakdown and the option ids that were not found in the
    catalog so the caller can surface them instead of silently dropping them.
    """

    model = catalog.find_model(model_id)
    options, missing = catalog.resolve_options(selections.option_ids, model=model)
    fee = delivery.fee if delivery is not None and delivery.is_available else None
    status = delivery.status if delivery is not None else None
    pricing = compute_pricing(
        model,
        options,
        selections.package_key,
        fee,
        policy=policy,
        authenticated=authenticated,
        delivery_status=status,
    )
    return pricing, missing


__all__ = ["DEFAULT_TAX_POLICY", "compute_pricing", "price_selections"]
