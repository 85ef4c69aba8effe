import pytest

from intentnet.types import (
    AgentConfig,
    AgentType,
    ErrorCode,
    Intent,
    IntentError,
    IntentEvent,
    IntentStatus,
    default_agent_config,
)


def test_default_agent_config_values():
    config = default_agent_config()
    assert config.agent_type is AgentType.GENERAL
    assert config.max_concurrent_intents == 10
    assert config.min_bid_amount == "1000"
    assert config.max_bid_amount == "100000"
    assert config.bid_strategy.type == "balanced"
    assert config.bid_strategy.base_fee == "5000"
    assert config.bid_strategy.profit_margin == 0.15
    assert config.bid_strategy.risk_factor == 0.1
    assert config.intent_filter.min_priority == 1
    assert config.intent_filter.max_priority == 10


def test_default_agent_config_returns_independent_instances():
    first = default_agent_config()
    second = default_agent_config()
    first.capabilities.append("swap")
    first.intent_filter.allowed_types.append("trade")
    assert second.capabilities == []
    assert second.intent_filter.allowed_types == []


def test_agent_type_values():
    assert AgentType("trading") is AgentType.TRADING
    assert AgentType("data_access") is AgentType.DATA_ACCESS
    assert AgentType("computation") is AgentType.COMPUTATION
    assert str(AgentType.GENERAL) == "general"


def test_agent_config_lists_not_shared():
    a = AgentConfig()
    b = AgentConfig()
    a.specializations.append("x")
    assert b.specializations == []


def test_intent_status_str_round_trip():
    for status in IntentStatus:
        assert IntentStatus(str(status)) is status


def test_intent_defaults_and_event():
    intent = Intent(id="i1", type="trade")
    event = IntentEvent(intent=intent, topic="intent-broadcast.trade", source="peer")
    assert event.intent.id == "i1"
    assert event.topic == "intent-broadcast.trade"
    assert intent.status is IntentStatus.CREATED
    assert intent.relevant_tags == []


def test_intent_error_wrap_keeps_cause():
    original = ValueError("boom")
    wrapped = IntentError.wrap(original, ErrorCode.PROCESSING_FAILED, "Pipeline processing failed")
    assert wrapped.code is ErrorCode.PROCESSING_FAILED
    assert wrapped.message == "Pipeline processing failed"
    assert wrapped.__cause__ is original
    assert "boom" in str(wrapped)
    assert "Pipeline processing failed" in str(wrapped)


def test_intent_error_is_raisable_with_details():
    error = IntentError(ErrorCode.HANDLER_NOT_FOUND, "No handlers found", "trade")
    assert error.details == "trade"
    assert error.code is ErrorCode.HANDLER_NOT_FOUND
    assert error.message == "No handlers found"
    assert "trade" in str(error)
    with pytest.raises(IntentError) as info:
        raise error
    assert info.value is error