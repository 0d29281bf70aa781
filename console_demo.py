"""
Offline console demo: chat with the sales assistant without any API keys.

Runs the real decision pipeline (rule-based analyzer, lead scorer,
order state machine, tagger and journey tracker) against an in-memory
store and the demo catalog. No LLM, no chat platform, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario order
    python console_demo.py --scenario cancel
"""

import argparse
import asyncio
from typing import Optional

from chatcommerce.agents.sales_assistant import ProcessResult, SalesAssistant
from chatcommerce.analysis.rule_analyzer import RuleBasedAnalyzer
from chatcommerce.analytics.conversion_tracker import ConversionTracker
from chatcommerce.conversation.lead_scorer import LeadScorer
from chatcommerce.conversation.lead_tagger import LeadTagger
from chatcommerce.conversation.order_processor import OrderProcessor
from chatcommerce.errors import InvalidInputError
from chatcommerce.prompts.response_picker import RandomPicker
from chatcommerce.rules.loader import load_rules
from chatcommerce.schemas.business_schema import load_business_config
from chatcommerce.storage.store import CommerceStore
from chatcommerce.tools.catalog import ProductCatalog
from chatcommerce.tools.messenger import LoggingMessageSender

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_CUSTOMER = "console-customer"


def build_offline_assistant(seed: int = 7) -> SalesAssistant:
    """Assistant wired with the rule-based analyzer and an in-memory store."""
    rules = load_rules()
    business = load_business_config()
    return SalesAssistant(
        business=business,
        analyzer=RuleBasedAnalyzer(rules),
        store=CommerceStore.in_memory(),
        catalog=ProductCatalog(business.products, business.faqs),
        scorer=LeadScorer(rules.scoring),
        processor=OrderProcessor(rules.order),
        tagger=LeadTagger(),
        tracker=ConversionTracker(),
        picker=RandomPicker(seed),
        sender=LoggingMessageSender(),
    )


class ConsoleSession:
    """Simulates a Messenger conversation in the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "order": [
            "Hi!",
            "I want to buy the Lavender Oil",
            "My name is Juan Dela Cruz, phone 09171234567",
            "yes",
        ],
        "cancel": [
            "I want to order the Lavender Oil",
            "My name is Maria, 09181234567",
            "no, cancel",
            "Actually I want to buy the Lavender Oil",
        ],
        "price": [
            "how much is it?",
            "What is the price of the diffuser?",
            "How long is shipping?",
        ],
    }

    def __init__(self, assistant: Optional[SalesAssistant] = None) -> None:
        self.assistant = assistant or build_offline_assistant()
        self.customer_id = DEMO_CUSTOMER

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{self.assistant.business.shop_name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _header(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  CHAT COMMERCE ASSISTANT - {title}{RESET}")
        print(f"{BOLD}  Shop: {self.assistant.business.shop_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _footer(self, title: str) -> None:
        metrics = self.assistant.real_time_metrics()
        journey = self.assistant.store.load_journey(self.customer_id)
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {title}{RESET}")
        if journey is not None:
            print(f"{DIM}  Funnel stage: {journey.current_stage.value} ({journey.status.value}){RESET}")
            print(f"{DIM}  Engagement score: {journey.metrics.engagement_score}{RESET}")
        print(
            f"{DIM}  Customers: {metrics.total_customers}, "
            f"conversions: {metrics.total_conversions}{RESET}"
        )
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _show(self, result: ProcessResult) -> None:
        self.agent_say(result.response_text)
        if result.quick_replies:
            titles = " | ".join(reply["title"] for reply in result.quick_replies)
            print(f"{YELLOW}  [{titles}]{RESET}")
        self.system_log(
            f"score={result.lead_score} urgency={result.urgency} "
            f"order={result.order_status or '-'} next={result.next_best_action}"
        )
        if result.tags:
            self.system_log("tags: " + ", ".join(t.tag for t in result.tags))

    async def _process_input(self, text: str) -> None:
        try:
            result = await self.assistant.process_message(self.customer_id, text)
        except InvalidInputError as exc:
            print(f"{RED}  Rejected: {exc}{RESET}")
            return
        self._show(result)

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._header(f"Scenario: {scenario}")
        for step in steps:
            print(f"\n{BLUE}[Customer] {RESET}{step}")
            await self._process_input(step)
        self._footer(f"Scenario '{scenario}' complete.")

    async def run(self) -> None:
        self._header("Console Demo (type 'quit' to exit)")
        while True:
            user_input = input(f"\n{BLUE}[Customer] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                break
            await self._process_input(user_input)
        self._footer("Conversation ended.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
