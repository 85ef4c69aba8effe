"""Bid decisions for service agents: cost, capability match and strategy."""

from __future__ import annotations

import logging

from intentnet.types import AgentConfig, BidDecision, Intent

_log = logging.getLogger(__name__)

_DEFAULT_BASE_FEE = 1000.0
_DEFAULT_PROFIT_MARGIN = 0.15
_MIN_CAPABILITY_SCORE = 0.3


def _parse_float(text: str) -> float:
    """Parse a decimal amount strictly: no surrounding blanks or digit separators."""
    if text != text.strip() or "_" in text:
        raise ValueError(f"invalid number: {text!r}")
    return float(text)


def _parse_or_zero(text: str) -> float:
    try:
        return _parse_float(text)
    except ValueError:
        return 0.0


def _related(a: str, b: str) -> bool:
    return b in a or a in b


class BidDecisionManager:
    """Decides whether an agent should bid on an intent, and how much."""

    def __init__(self, config: AgentConfig) -> None:
        self.config = config

    def make_bid_decision(self, intent: Intent) -> BidDecision:
        """Return the bid decision for ``intent``."""
        _log.debug("Making bid decision for intent %s (type %s)", intent.id, intent.type)

        base_cost = self.calculate_base_cost(intent)

        capability_score = self.evaluate_capability_match(intent)
        if capability_score < _MIN_CAPABILITY_SCORE:
            return BidDecision(
                should_bid=False,
                reason="Insufficient capability match",
                metadata={"capability_score": f"{capability_score:.2f}"},
            )

        bid_amount, confidence = self.calculate_competitive_bid(base_cost, capability_score, intent)
        final_bid = self.apply_bid_strategy(bid_amount, intent)

        if not self.is_valid_bid_amount(final_bid):
            return BidDecision(
                should_bid=False,
                reason="Bid amount outside acceptable range",
                metadata={"calculated_bid": final_bid},
            )

        return BidDecision(
            should_bid=True,
            bid_amount=final_bid,
            confidence=confidence,
            reason="Competitive bid calculated",
            metadata={
                "base_cost": base_cost,
                "capability_score": f"{capability_score:.2f}",
                "strategy": self.config.bid_strategy.type,
            },
        )

    def calculate_base_cost(self, intent: Intent) -> str:
        """Sum tradable tag fees and the base fee, scaled by intent priority."""
        total = 0.0
        for tag in intent.relevant_tags:
            if not tag.is_tradable:
                continue
            try:
                total += _parse_float(tag.tag_fee)
            except ValueError:
                _log.warning("Invalid tag fee format for tag %s: %r", tag.tag_name, tag.tag_fee)

        try:
            base_fee = _parse_float(self.config.bid_strategy.base_fee)
        except ValueError:
            base_fee = _DEFAULT_BASE_FEE
        total += base_fee

        total *= 1.0 + (intent.priority - 1) * 0.1
        return f"{total:.0f}"

    def evaluate_capability_match(self, intent: Intent) -> float:
        """Score from 0 to 1 how well the agent fits the intent type."""
        if not self.config.capabilities:
            return 0.5

        intent_type = intent.type.lower()
        type_score = sum(
            0.3 for cap in self.config.capabilities if _related(intent_type, cap.lower())
        )
        specialization_score = sum(
            0.4 for spec in self.config.specializations if _related(intent_type, spec.lower())
        )
        agent_type = str(self.config.agent_type).lower()
        agent_type_score = 0.3 if _related(intent_type, agent_type) else 0.0

        return min(type_score + specialization_score + agent_type_score, 1.0)

    def calculate_competitive_bid(
        self, base_cost: str, capability_score: float, intent: Intent
    ) -> tuple[str, float]:
        """Return the bid amount and the confidence in it."""
        cost = _parse_or_zero(base_cost)

        capability_adjustment = 1.0 + (capability_score - 0.5) * 0.5
        urgency_adjustment = 1.2 if 0 < intent.max_duration < 3600 else 1.0

        profit_margin = self.config.bid_strategy.profit_margin
        if profit_margin <= 0:
            profit_margin = _DEFAULT_PROFIT_MARGIN

        final_bid = cost * capability_adjustment * urgency_adjustment * (1 + profit_margin)

        confidence = capability_score * 0.7 + (urgency_adjustment - 1) * 0.3
        confidence = max(0.1, min(confidence, 1.0))

        return f"{final_bid:.0f}", confidence

    def apply_bid_strategy(self, bid_amount: str, intent: Intent) -> str:
        """Adjust a bid for the configured strategy and risk factor."""
        bid = _parse_or_zero(bid_amount)

        strategy = self.config.bid_strategy.type
        if strategy == "conservative":
            bid *= 0.9
        elif strategy == "aggressive":
            bid *= 1.1

        risk_factor = self.config.bid_strategy.risk_factor
        if risk_factor > 0:
            bid *= 1 + risk_factor * 0.1

        return f"{bid:.0f}"

    def is_valid_bid_amount(self, bid_amount: str) -> bool:
        """Tell whether ``bid_amount`` parses and lies within the configured bounds."""
        try:
            bid = _parse_float(bid_amount)
        except ValueError:
            return False

        min_bid = _parse_or_zero(self.config.min_bid_amount)
        max_bid = _parse_or_zero(self.config.max_bid_amount)

        if min_bid > 0 and bid < min_bid:
            return False
        if max_bid > 0 and bid > max_bid:
            return False
        return True