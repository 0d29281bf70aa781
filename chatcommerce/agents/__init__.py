from chatcommerce.agents.locks import KeyedLocks
from chatcommerce.agents.sales_assistant import ProcessResult, SalesAssistant

__all__ = ["SalesAssistant", "ProcessResult", "KeyedLocks"]
