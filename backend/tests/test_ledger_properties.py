"""
Property-based tests for the ingredient ledger fold.
"""

from decimal import Decimal
from types import SimpleNamespace

from hypothesis import given, settings, strategies as st

from pos_core.services.domain import StockState, apply_movement, replay_movements
from shared.config.constants import MovementType


quantities = st.decimals(min_value=Decimal("0.001"), max_value=Decimal("1000"), places=3)
unit_costs = st.decimals(min_value=Decimal("0"), max_value=Decimal("500"), places=4)

entradas = st.builds(
    lambda q, c: SimpleNamespace(type=MovementType.ENTRADA, quantity=q, unit_cost=c),
    quantities,
    st.one_of(st.none(), unit_costs),
)
salidas = st.builds(
    lambda q: SimpleNamespace(type=MovementType.SALIDA, quantity=q, unit_cost=None),
    quantities,
)
ajustes = st.builds(
    lambda q: SimpleNamespace(type=MovementType.AJUSTE, quantity=q, unit_cost=None),
    st.one_of(st.just(Decimal("0")), quantities),
)
movements = st.lists(st.one_of(entradas, salidas, ajustes), max_size=30)


class TestLedgerProperties:
    """Replay must agree with step-by-step application."""

    @given(history=movements)
    @settings(max_examples=100)
    def test_replay_equals_incremental(self, history):
        """Property: folding the whole log equals applying it one movement at a time."""
        state = StockState(Decimal("0"), Decimal("0"))
        for movement in history:
            state = apply_movement(state, movement.type, movement.quantity, movement.unit_cost)

        assert replay_movements(history) == state

    @given(history=movements, split=st.integers(min_value=0, max_value=30))
    @settings(max_examples=100)
    def test_replay_is_resumable(self, history, split):
        """Property: replaying a prefix and continuing gives the same result."""
        split = min(split, len(history))
        head = replay_movements(history[:split])
        for movement in history[split:]:
            head = apply_movement(head, movement.type, movement.quantity, movement.unit_cost)

        assert head == replay_movements(history)

    @given(history=st.lists(st.builds(
        lambda q, c: SimpleNamespace(type=MovementType.ENTRADA, quantity=q, unit_cost=c),
        quantities,
        unit_costs,
    ), min_size=1, max_size=20))
    @settings(max_examples=100)
    def test_costed_entradas_stay_within_price_range(self, history):
        """Property: the weighted average never leaves [min price, max price]."""
        state = replay_movements(history)
        prices = [m.unit_cost for m in history]

        tolerance = Decimal("0.0001")
        assert min(prices) - tolerance <= state.cost_per_unit <= max(prices) + tolerance
        assert state.stock == sum(m.quantity for m in history)

    @given(
        stock=st.decimals(min_value=Decimal("0"), max_value=Decimal("1000"), places=3),
        cost=unit_costs,
        quantity=quantities,
    )
    def test_salida_never_changes_cost(self, stock, cost, quantity):
        state = apply_movement(StockState(stock, cost), MovementType.SALIDA, quantity)

        assert state.cost_per_unit == cost
        assert state.stock == stock - quantity

    @given(history=movements)
    @settings(max_examples=100)
    def test_cost_stays_within_paid_prices(self, history):
        """Property: even through negative stock, cost is never below zero or above the highest price paid."""
        state = replay_movements(history)
        prices = [m.unit_cost for m in history if m.unit_cost is not None]

        assert state.cost_per_unit >= 0
        assert state.cost_per_unit <= max(prices, default=Decimal("0"))

    @given(
        stock=st.decimals(min_value=Decimal("-1000"), max_value=Decimal("0"), places=3),
        cost=unit_costs,
        quantity=quantities,
        unit_cost=unit_costs,
    )
    def test_entrada_on_empty_or_negative_stock_takes_incoming_price(self, stock, cost, quantity, unit_cost):
        state = apply_movement(StockState(stock, cost), MovementType.ENTRADA, quantity, unit_cost)

        assert state.cost_per_unit == unit_cost
        assert state.stock == stock + quantity

    def test_replay_of_empty_log_is_zero(self):
        assert replay_movements([]) == StockState(Decimal("0"), Decimal("0"))
