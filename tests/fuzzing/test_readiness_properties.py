"""
Property-based tests for the readiness and freight engines.

Properties checked over generated inputs:
- on_hand equals the sum of every matching inventory row
- short_qty is never negative and matches max(0, required - supply)
- status agrees with the quantities it was derived from
- the explain trace re-derives the reported totals
- more supply never makes a product less ready
- allocated freight always sums back to the charge
- no freight share is negative, even for many near-equal lines and a few cents
"""

from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from farm_engines.demand import DemandLine
from farm_engines.freight import FreightLineInput, allocate_freight
from farm_engines.readiness import compute_readiness
from farm_engines.readiness_types import ReadinessStatus
from farm_engines.sources import InventoryRow, OrderLine

PRODUCTS = ("p-ams", "p-urea", "p-humic")

quantities = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("100000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

inventory_rows = st.lists(
    st.builds(InventoryRow, product_id=st.sampled_from(PRODUCTS), quantity=quantities),
    max_size=12,
)

order_lines = st.lists(
    st.builds(
        OrderLine,
        order_id=st.sampled_from(("ord-1", "ord-2", "ord-3")),
        product_id=st.sampled_from(PRODUCTS),
        remaining_qty=quantities,
    ),
    max_size=8,
)

demand = st.lists(
    st.tuples(st.sampled_from(PRODUCTS), quantities.filter(lambda q: q > 0)),
    min_size=1,
    max_size=3,
    unique_by=lambda pair: pair[0],
).map(
    lambda pairs: [
        DemandLine(id=pid, product_id=pid, label=pid, required_qty=qty, unit="lbs")
        for pid, qty in pairs
    ]
)

_RANK = {
    ReadinessStatus.BLOCKING: 0,
    ReadinessStatus.ON_ORDER: 1,
    ReadinessStatus.READY: 2,
}

_SETTINGS = settings(
    max_examples=150,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)


class TestReadinessProperties:
    """Invariants of compute_readiness over arbitrary supply."""

    @_SETTINGS
    @given(planned=demand, inventory=inventory_rows, orders=order_lines)
    def test_on_hand_is_sum_of_rows(self, planned, inventory, orders):
        result = compute_readiness(planned, inventory, orders)

        for item in result.items:
            expected = sum(
                (row.quantity for row in inventory if row.product_id == item.product_id),
                Decimal("0"),
            )
            assert item.on_hand_qty == expected

    @_SETTINGS
    @given(planned=demand, inventory=inventory_rows, orders=order_lines)
    def test_shortfall_and_status_consistent(self, planned, inventory, orders):
        result = compute_readiness(planned, inventory, orders)

        for item in result.items:
            supply = item.on_hand_qty + item.on_order_qty
            assert item.short_qty >= 0
            assert item.short_qty == max(Decimal("0"), item.required_qty - supply)
            if item.status is ReadinessStatus.READY:
                assert item.on_hand_qty >= item.required_qty
            elif item.status is ReadinessStatus.ON_ORDER:
                assert item.on_hand_qty < item.required_qty <= supply
            else:
                assert supply < item.required_qty
                assert item.short_qty > 0

    @_SETTINGS
    @given(planned=demand, inventory=inventory_rows, orders=order_lines)
    def test_explain_rederives_totals(self, planned, inventory, orders):
        result = compute_readiness(planned, inventory, orders)

        for item in result.items:
            assert item.explain.rederived_on_hand == item.on_hand_qty
            assert item.explain.rederived_on_order == item.on_order_qty
            assert all(line.remaining_qty > 0 for line in item.explain.order_lines)

    @_SETTINGS
    @given(
        planned=demand,
        inventory=inventory_rows,
        orders=order_lines,
        extra=st.builds(InventoryRow, product_id=st.sampled_from(PRODUCTS), quantity=quantities),
    )
    def test_more_supply_never_less_ready(self, planned, inventory, orders, extra):
        before = compute_readiness(planned, inventory, orders)
        after = compute_readiness(planned, [*inventory, extra], orders)

        for old, new in zip(before.items, after.items):
            assert _RANK[new.status] >= _RANK[old.status]
            assert new.short_qty <= old.short_qty

    @_SETTINGS
    @given(planned=demand, inventory=inventory_rows, orders=order_lines)
    def test_counts_partition_items(self, planned, inventory, orders):
        result = compute_readiness(planned, inventory, orders)

        assert (
            result.ready_count + result.on_order_count + result.blocking_count
            == result.total_count
            == len(planned)
        )


freight_lines = st.lists(
    st.builds(
        FreightLineInput,
        product_id=st.sampled_from(PRODUCTS),
        quantity=quantities,
        unit=st.sampled_from(("ton", "lbs", "gal", "oz", "bag")),
        unit_price=quantities,
    ),
    min_size=1,
    max_size=10,
)

charges = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("50000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


class TestFreightProperties:
    """Conservation and fallbacks of allocate_freight."""

    @_SETTINGS
    @given(lines=freight_lines, total=charges)
    def test_conservation(self, lines, total):
        allocation = allocate_freight(lines, total)

        if allocation.is_weighted:
            assert allocation.total_allocated == total
        else:
            assert allocation.total_allocated == 0
            for line in allocation.lines:
                assert line.landed_unit_cost == line.unit_price

    @_SETTINGS
    @given(lines=freight_lines, total=charges)
    def test_zero_weight_lines_carry_nothing(self, lines, total):
        allocation = allocate_freight(lines, total)

        for line in allocation.lines:
            if line.weight == 0:
                assert line.allocated_freight == 0
            assert line.landed_total == line.subtotal + line.allocated_freight

    @_SETTINGS
    @given(lines=freight_lines, total=charges)
    def test_shares_never_negative(self, lines, total):
        allocation = allocate_freight(lines, total)

        for line in allocation.lines:
            assert line.allocated_freight >= 0
            assert line.landed_total >= line.subtotal


near_equal_lines = st.integers(min_value=2, max_value=40).flatmap(
    lambda count: st.lists(
        st.builds(
            FreightLineInput,
            product_id=st.sampled_from(PRODUCTS),
            quantity=st.decimals(
                min_value=Decimal("0.99"),
                max_value=Decimal("1.01"),
                places=3,
                allow_nan=False,
                allow_infinity=False,
            ),
            unit=st.just("lb"),
            unit_price=st.just(Decimal("1")),
        ),
        min_size=count,
        max_size=count,
    )
)

tiny_charges = st.integers(min_value=0, max_value=99).map(lambda cents: Decimal(cents) / 100)


class TestFreightRoundingProperties:
    """Many near-equal lines sharing a few cents."""

    @_SETTINGS
    @given(lines=near_equal_lines, total=tiny_charges)
    def test_cents_spread_without_negative_shares(self, lines, total):
        allocation = allocate_freight(lines, total)

        shares = [line.allocated_freight for line in allocation.lines]
        assert sum(shares) == total
        assert all(share >= 0 for share in shares)
        # each share lands within one cent of its exact proportion
        for line in allocation.lines:
            exact = total * line.weight / allocation.total_weight
            assert abs(line.allocated_freight - exact) < Decimal("0.01")
