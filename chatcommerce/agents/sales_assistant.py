"""
Sales assistant: the per-message decision pipeline.

Sequences analysis, lead scoring, the order flow, tagging and journey
tracking for one inbound message, persists the results and returns the
reply. Messages from the same customer are serialised in arrival order;
different customers run concurrently.

Usage:
    assistant = SalesAssistant.from_settings()
    result = await assistant.process_message("psid-1234", "how much is the diffuser?")
    await assistant.handle_incoming("psid-1234", "yes")  # process and send
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from chatcommerce.agents.locks import KeyedLocks
from chatcommerce.analysis.base import MessageAnalyzer, build_analyzer
from chatcommerce.analytics.conversion_tracker import (
    ConversionTracker,
    InteractionRecord,
    RealTimeMetrics,
)
from chatcommerce.config import AppConfig, settings
from chatcommerce.conversation.guardrails import GuardrailPipeline
from chatcommerce.conversation.lead_scorer import LeadScorer, determine_urgency
from chatcommerce.conversation.lead_tagger import LeadTagger
from chatcommerce.conversation.order_processor import OrderOutcome, OrderProcessor
from chatcommerce.errors import InvalidInputError, OrderCreationError, PersistenceError
from chatcommerce.logging_context import conversation_scope, get_conversation_logger
from chatcommerce.prompts.response_picker import RandomPicker, ResponsePicker
from chatcommerce.prompts.response_templates import (
    FALLBACK_RESPONSE,
    HANDOFF_RESPONSE,
    build_faq_response,
    build_intent_response,
    quick_replies_for,
)
from chatcommerce.rules.loader import load_rules
from chatcommerce.schemas.analysis_schema import MessageAnalysis
from chatcommerce.schemas.business_schema import BusinessConfig, Product, load_business_config
from chatcommerce.schemas.customer_schema import ConversationContext, CustomerTag
from chatcommerce.schemas.order_schema import OrderSession, OrderState
from chatcommerce.storage.store import CommerceStore
from chatcommerce.tools.catalog import ProductCatalog
from chatcommerce.tools.messenger import LoggingMessageSender, MessageSender
from chatcommerce.utils import utc_now

logger = get_conversation_logger(__name__)


def session_state(session: Optional[OrderSession]) -> Optional[str]:
    return session.state.value if session is not None else None


@dataclass
class ProcessResult:
    """Outward-facing result of one processed message."""
    response_text: str
    lead_score: int
    tags: list[CustomerTag]
    order_status: Optional[str]
    urgency: str
    next_best_action: str
    quick_replies: list[dict[str, str]] = field(default_factory=list)
    order_total: Optional[float] = None
    analysis_degraded: bool = False


class SalesAssistant:
    """Runs inbound chat messages through the lead and order decision pipeline."""

    def __init__(
        self,
        business: BusinessConfig,
        analyzer: MessageAnalyzer,
        store: CommerceStore,
        catalog: ProductCatalog,
        scorer: LeadScorer,
        processor: OrderProcessor,
        tagger: LeadTagger,
        tracker: ConversionTracker,
        picker: ResponsePicker,
        sender: Optional[MessageSender] = None,
        guardrails: Optional[GuardrailPipeline] = None,
    ) -> None:
        self.business = business
        self.analyzer = analyzer
        self.store = store
        self.catalog = catalog
        self.scorer = scorer
        self.processor = processor
        self.tagger = tagger
        self.tracker = tracker
        self.picker = picker
        self.sender = sender or LoggingMessageSender()
        self.guardrails = guardrails or GuardrailPipeline()
        self._locks = KeyedLocks()

    @classmethod
    def from_settings(
        cls,
        config: AppConfig = settings,
        sender: Optional[MessageSender] = None,
        picker: Optional[ResponsePicker] = None,
    ) -> "SalesAssistant":
        """Wire every collaborator from the application configuration."""
        rules = load_rules(config.analyzer.rules_path or None)
        business = load_business_config()
        if config.storage.backend == "sql":
            store = CommerceStore.from_url(config.storage.database_url)
        else:
            store = CommerceStore.in_memory()
        return cls(
            business=business,
            analyzer=build_analyzer(config.analyzer, rules),
            store=store,
            catalog=ProductCatalog(business.products, business.faqs),
            scorer=LeadScorer(rules.scoring),
            processor=OrderProcessor(rules.order),
            tagger=LeadTagger(),
            tracker=ConversionTracker(),
            picker=picker or RandomPicker(),
            sender=sender,
        )

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    async def process_message(
        self, customer_id: str, text: str, now: Optional[datetime] = None
    ) -> ProcessResult:
        """
        Process one inbound message for ``customer_id``.

        Raises:
            InvalidInputError: If the customer id or message is missing,
                blank or too long. Nothing is read or written.
        """
        self.guardrails.validate_input(customer_id, text)
        async with self._locks.hold(customer_id):
            with conversation_scope(customer_id):
                return await self._run(customer_id, text.strip(), now or utc_now())

    async def handle_incoming(self, customer_id: str, text: str) -> Optional[ProcessResult]:
        """Process a message and hand the reply to the message sender."""
        try:
            result = await self.process_message(customer_id, text)
        except InvalidInputError as exc:
            logger.info("Rejected message from %s: %s", customer_id, exc)
            return None
        except Exception:
            logger.exception("Unhandled error processing message from %s", customer_id)
            await self.sender.send(customer_id, FALLBACK_RESPONSE, quick_replies_for(None))
            return None

        await self.sender.send(customer_id, result.response_text, result.quick_replies)
        return result

    def real_time_metrics(self) -> RealTimeMetrics:
        return self.tracker.real_time_metrics(self.store.list_journeys())

    # ------------------------------------------------------------------ #
    # Pipeline
    # ------------------------------------------------------------------ #

    async def _run(self, customer_id: str, text: str, now: datetime) -> ProcessResult:
        analysis = await self.analyzer.analyze(text, self.business)
        if analysis.degraded:
            logger.warning("Continuing with degraded analysis for %s", customer_id)

        try:
            context = self.store.load_context(customer_id) or ConversationContext(
                customer_id=customer_id
            )
            session = self.store.load_session(customer_id)
            journey = self.store.load_journey(customer_id)
        except PersistenceError:
            logger.error("Could not load state for %s", customer_id, exc_info=True)
            return self._failure(FALLBACK_RESPONSE, analysis)

        products = self.catalog.resolve(text, analysis.mentioned_products)
        analysis = analysis.model_copy(update={"mentioned_products": [p.name for p in products]})
        lead_score = self.scorer.score(text, analysis, context)
        urgency = determine_urgency(analysis, lead_score)

        try:
            outcome = self.processor.process(
                customer_id, session, text, analysis, products, self.business, lead_score, now,
            )
        except OrderCreationError:
            logger.error("Order creation failed for %s", customer_id, exc_info=True)
            return self._failure(FALLBACK_RESPONSE, analysis, lead_score, session_state(session))

        new_context = self._next_context(context, analysis, lead_score, outcome, now)
        response = self.guardrails.sanitize_response(
            self._respond(text, analysis, products, outcome, new_context)
        )

        tags = self.tagger.generate_tags(
            analysis, lead_score, outcome.order_status, context, products
        )
        profile = self.tagger.build_profile(customer_id, tags, analysis, lead_score, now)
        journey = self.tracker.track_interaction(
            journey,
            customer_id,
            InteractionRecord(
                message=text,
                response=response,
                lead_score=lead_score,
                intent=analysis.intent.value,
                order_status=outcome.order_status,
                product_ids=[p.id for p in products],
                product_names=[p.name for p in products],
                tags=[t.tag for t in tags],
                order_total=outcome.order_total,
                session_id=outcome.session.id if outcome.session else None,
            ),
            now,
        )

        # Order first so a failure leaves the stored session in confirming.
        # The session write commits the turn; tags and profile follow it.
        if outcome.order is not None:
            try:
                self.store.save_order(outcome.order)
            except PersistenceError:
                logger.error(
                    "Order write failed for session %s, session stays in confirming",
                    outcome.session.id if outcome.session else "-",
                    exc_info=True,
                )
                return self._failure(
                    FALLBACK_RESPONSE, analysis, lead_score, OrderState.CONFIRMING.value
                )

        try:
            self.store.save_context(new_context)
            self.store.save_journey(journey)
        except PersistenceError:
            logger.error("Could not persist context or journey for %s", customer_id, exc_info=True)
            return self._failure(FALLBACK_RESPONSE, analysis, lead_score, session_state(session))

        if outcome.session is not None:
            try:
                self.store.save_session(outcome.session)
            except PersistenceError:
                logger.error("Session write failed for %s", customer_id, exc_info=True)
                return self._failure(
                    HANDOFF_RESPONSE, analysis, lead_score, session_state(session)
                )

        try:
            for tag in tags:
                self.store.save_tag(customer_id, tag, now)
            self.store.save_profile(profile)
        except PersistenceError:
            logger.error(
                "Could not persist tags or profile for %s, order state already committed",
                customer_id,
                exc_info=True,
            )

        logger.info(
            "Processed message: intent=%s score=%d order=%s next=%s",
            analysis.intent.value, lead_score, outcome.order_status or "-", profile.next_best_action,
        )
        return ProcessResult(
            response_text=response,
            lead_score=lead_score,
            tags=tags,
            order_status=outcome.order_status,
            urgency=urgency,
            next_best_action=profile.next_best_action,
            quick_replies=outcome.quick_replies or quick_replies_for(None),
            order_total=outcome.order_total,
            analysis_degraded=analysis.degraded,
        )

    def _respond(
        self,
        text: str,
        analysis: MessageAnalysis,
        products: list[Product],
        outcome: OrderOutcome,
        context: ConversationContext,
    ) -> str:
        if outcome.response is not None:
            return outcome.response
        faq = self.catalog.find_faq(text)
        if faq is not None:
            return build_faq_response(faq)
        return build_intent_response(
            analysis.intent,
            products,
            self.business,
            self.picker,
            returning=context.interaction_count > 1,
        )

    def _next_context(
        self,
        context: ConversationContext,
        analysis: MessageAnalysis,
        lead_score: int,
        outcome: OrderOutcome,
        now: datetime,
    ) -> ConversationContext:
        topics = list(context.topics)
        if analysis.intent.value not in topics:
            topics.append(analysis.intent.value)
        return context.model_copy(update={
            "interaction_count": context.interaction_count + 1,
            "topics": topics,
            "last_interaction": now,
            "total_lead_score": context.total_lead_score + lead_score,
            "previous_purchase": (
                context.previous_purchase or outcome.order_status == OrderState.COMPLETED.value
            ),
        })

    def _failure(
        self,
        response: str,
        analysis: MessageAnalysis,
        lead_score: int = 0,
        order_status: Optional[str] = None,
    ) -> ProcessResult:
        return ProcessResult(
            response_text=response,
            lead_score=lead_score,
            tags=[],
            order_status=order_status,
            urgency=determine_urgency(analysis, lead_score),
            next_best_action="retry_later",
            quick_replies=quick_replies_for(None),
            analysis_degraded=analysis.degraded,
        )
