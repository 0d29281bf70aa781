from chatcommerce.conversation.guardrails import (
    GuardrailPipeline,
    InputGuardrail,
    ResponseGuardrail,
)
from chatcommerce.conversation.lead_scorer import LeadScorer, ScoreBreakdown, determine_urgency
from chatcommerce.conversation.lead_tagger import LeadTagger
from chatcommerce.conversation.order_processor import OrderIntent, OrderOutcome, OrderProcessor
from chatcommerce.conversation.order_state_machine import (
    InvalidTransitionError,
    OrderStateMachine,
    OrderTrigger,
)
from chatcommerce.conversation.slot_manager import OrderSlotManager

__all__ = [
    "GuardrailPipeline",
    "InputGuardrail",
    "ResponseGuardrail",
    "LeadScorer",
    "ScoreBreakdown",
    "determine_urgency",
    "LeadTagger",
    "OrderProcessor",
    "OrderIntent",
    "OrderOutcome",
    "OrderStateMachine",
    "OrderTrigger",
    "InvalidTransitionError",
    "OrderSlotManager",
]
