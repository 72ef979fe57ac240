import pytest

from src.core.calculator import DIRECTION_VIOLATION, calculate_trade, validate_trade
from src.core.errors import InvalidInputError, UndefinedRatioError
from src.models.trade import TradeRequest


def _trade(**overrides) -> TradeRequest:
    fields = dict(
        entry_price=100.0,
        stop_loss=90.0,
        take_profit=120.0,
        position_size=1000.0,
        leverage=1.0,
        currency_pair="BTC/USD",
    )
    fields.update(overrides)
    return TradeRequest(**fields)


def test_long_setup_profit_loss_and_ratio() -> None:
    result = calculate_trade(_trade())

    assert result.profit == 200.00
    assert result.loss == -100.00
    assert result.risk_reward_ratio == 2.0
    assert result.position_size == 1000.0
    assert result.leverage == 1.0
    assert result.currency_pair == "BTC/USD"


def test_short_setup_with_leverage() -> None:
    result = calculate_trade(_trade(stop_loss=110.0, take_profit=80.0, leverage=2.0))

    assert result.profit == 400.00
    assert result.loss == -200.00
    assert result.risk_reward_ratio == 2.0
    assert result.leverage == 2.0


@pytest.mark.parametrize(
    "entry,sl,tp,size,lev",
    [
        (100.0, 95.0, 130.0, 500.0, 1.0),
        (0.5, 0.4, 0.7, 10.0, 3.0),
        (45_000.0, 44_000.0, 47_500.0, 2_500.0, 10.0),
        (3_000.0, 3_150.0, 2_700.0, 1_000.0, 5.0),
        (1.2345, 1.3, 1.1, 100.0, 1.0),
    ],
)
def test_valid_setups_yield_positive_profit_and_negative_loss(entry, sl, tp, size, lev) -> None:
    request = _trade(entry_price=entry, stop_loss=sl, take_profit=tp, position_size=size, leverage=lev)
    assert validate_trade(request) == []

    result = calculate_trade(request)
    assert result.profit > 0
    assert result.loss < 0
    assert result.risk_reward_ratio >= 0
    assert result.risk_reward_ratio == pytest.approx(abs(result.profit) / abs(result.loss), abs=1e-2)


def test_ratio_is_rounded_to_four_decimals() -> None:
    result = calculate_trade(_trade(stop_loss=97.0, take_profit=110.0))
    assert result.profit == 100.0
    assert result.loss == -30.0
    assert result.risk_reward_ratio == 3.3333


def test_calculate_is_deterministic() -> None:
    request = _trade(entry_price=123.45, stop_loss=120.01, take_profit=131.7, leverage=4.0)
    assert calculate_trade(request) == calculate_trade(request)


def test_missing_leverage_defaults_to_one() -> None:
    result = calculate_trade(_trade(leverage=None))
    assert result.leverage == 1.0
    assert result.profit == 200.0


def test_validate_accepts_valid_long_trade() -> None:
    assert validate_trade(_trade()) == []


def test_validate_rejects_zero_risk_trade_with_single_direction_violation() -> None:
    assert validate_trade(_trade(stop_loss=100.0)) == [DIRECTION_VIOLATION]


def test_validate_rejects_zero_reward_trade() -> None:
    assert validate_trade(_trade(take_profit=100.0)) == [DIRECTION_VIOLATION]


def test_validate_rejects_incoherent_ordering() -> None:
    # target and stop both above entry
    assert validate_trade(_trade(stop_loss=105.0)) == [DIRECTION_VIOLATION]


def test_validate_reports_every_violation() -> None:
    errors = validate_trade(TradeRequest(position_size=-1.0, leverage=0.0))
    assert errors == [
        "Entry price must be positive",
        "Stop loss must be positive",
        "Take profit must be positive",
        "Position size must be positive",
        "Leverage must be at least 1",
    ]


def test_validate_skips_direction_check_when_a_price_is_absent() -> None:
    errors = validate_trade(_trade(take_profit=None))
    assert errors == ["Take profit must be positive"]


def test_leverage_below_one_is_rejected() -> None:
    request = _trade(leverage=0.5)
    assert validate_trade(request) == ["Leverage must be at least 1"]

    with pytest.raises(InvalidInputError, match="Leverage must be at least 1"):
        calculate_trade(request)


def test_negative_entry_is_rejected() -> None:
    request = _trade(entry_price=-5.0)
    assert "Entry price must be positive" in validate_trade(request)

    with pytest.raises(InvalidInputError, match="must be positive"):
        calculate_trade(request)


def test_zero_loss_raises_undefined_ratio() -> None:
    with pytest.raises(UndefinedRatioError):
        calculate_trade(_trade(stop_loss=100.0))


def test_undefined_ratio_is_an_input_error() -> None:
    assert issubclass(UndefinedRatioError, InvalidInputError)


@pytest.mark.parametrize("field", ["entry_price", "stop_loss", "take_profit", "position_size"])
def test_calculate_rejects_missing_or_non_finite_values(field) -> None:
    with pytest.raises(InvalidInputError):
        calculate_trade(_trade(**{field: None}))
    with pytest.raises(InvalidInputError):
        calculate_trade(_trade(**{field: float("inf")}))
    with pytest.raises(InvalidInputError):
        calculate_trade(_trade(**{field: float("nan")}))


def test_overflowing_position_is_rejected() -> None:
    request = TradeRequest(
        entry_price=1.0,
        stop_loss=0.5,
        take_profit=2.0,
        position_size=1e308,
        leverage=10.0,
        currency_pair="BTC/USD",
    )
    assert validate_trade(request) == []
    with pytest.raises(InvalidInputError, match="not finite"):
        calculate_trade(request)


def test_zero_reward_trade_has_zero_ratio() -> None:
    result = calculate_trade(_trade(take_profit=100.0))
    assert result.profit == 0.0
    assert result.risk_reward_ratio == 0.0


def test_result_wire_shape() -> None:
    assert calculate_trade(_trade()).to_dict() == {
        "profit": 200.0,
        "loss": -100.0,
        "riskRewardRatio": 2.0,
        "positionSize": 1000.0,
        "leverage": 1.0,
        "currencyPair": "BTC/USD",
    }
