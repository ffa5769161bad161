import json
import os
import urllib.request
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Protocol

from huggingface_hub import InferenceClient

from smartsave.core.models import Budget, SavingsGoal, Transaction
from smartsave.core.recommendations import CURRENCY, prepare_financial_data
from smartsave.core.savings import monthly_need, months_left

logger = logging.getLogger(__name__)

_OLLAMA_URL = "http://localhost:11434/api/chat"
_OPENAI_URL = "https://api.openai.com/v1/chat/completions"

NOT_CONFIGURED_MESSAGE = (
    "I'm sorry, the assistant is not configured properly. Please contact support."
)
ERROR_MESSAGE = (
    "I'm sorry, there was an error processing your request. Please try again later."
)
EMPTY_MESSAGE = "I'm sorry, I couldn't generate a response."

SYSTEM_PROMPT = """You are a helpful financial assistant in the SmartSave application.
You help users understand their financial data and provide personalized insights and recommendations.
Your tone is professional but friendly.

Here's the detailed context of the user's financial data:
{context}

When responding to user queries:
1. Reference specific numbers and data from the financial context when relevant
2. Provide actionable insights and personalized recommendations based on their financial situation
3. Be precise with calculations and percentages
4. If analyzing trends or making comparisons, clearly explain your reasoning
5. Offer suggestions for budget improvements or savings opportunities when appropriate

Answer the user's questions based on this financial context. If you can't answer a question based on the data provided,
politely explain that you need more information or that the data isn't available.
Keep responses concise and focused on financial insights."""


class LLMProvider(Protocol):
    """A minimal protocol all concrete providers must implement."""

    def generate(self, messages: List[dict]) -> str:  # noqa: D401 – keep simple signature
        """Return the model reply given a list-of-dicts chat history."""


@dataclass
class LLMClient:
    """Simple client that delegates chat requests to an LLM provider."""
    provider: LLMProvider | None = None

    def __post_init__(self) -> None:
        if self.provider is None:
            self.provider = get_provider_from_env()

    def chat(self, messages: List[dict]) -> str:
        return self.provider.generate(messages)


# -----------------------------------------------------------------------------
# Providers
# -----------------------------------------------------------------------------

@dataclass
class HuggingFaceProvider:
    model: str
    token: str | None = None

    def __post_init__(self) -> None:
        self._client = InferenceClient(api_key=self.token)

    def generate(self, messages: List[dict]) -> str:
        out = self._client.chat_completion(
            messages=messages, model=self.model, max_tokens=500, temperature=0.5
        )
        return (out.choices[0].message.content or "").strip()


@dataclass
class OpenAIProvider:
    model: str
    api_key: str

    def generate(self, messages: List[dict]) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": 500,
            "temperature": 0.5,
        }
        data = json.dumps(payload).encode()
        req = urllib.request.Request(_OPENAI_URL, data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        req.add_header("Authorization", f"Bearer {self.api_key}")
        with urllib.request.urlopen(req) as resp:
            resp_data = json.load(resp)
        return (resp_data["choices"][0]["message"]["content"] or "").strip()


@dataclass
class OllamaProvider:
    model: str
    url: str = _OLLAMA_URL

    def _post(self, payload: dict) -> dict:
        data = json.dumps(payload).encode()
        logger.debug("Ollama ▶ POST %s – payload: %s", self.url, payload)
        req = urllib.request.Request(self.url, data=data, method="POST")
        req.add_header("Content-Type", "application/json")

        with urllib.request.urlopen(req) as resp:
            raw = resp.read().decode()
            logger.debug("Ollama ◀ %s", raw)
            return json.loads(raw)

    def generate(self, messages: List[dict]) -> str:
        resp_data = self._post({"model": self.model, "messages": messages, "stream": False})

        # /api/chat returns either {'message': str} or {'message': {'content': str}}
        msg = resp_data.get("message", "")
        if isinstance(msg, dict):
            msg = msg.get("content", "")
        if not isinstance(msg, str):
            raise RuntimeError(f"Unexpected Ollama response format: {resp_data}")
        return msg.strip()


def get_provider_from_env() -> LLMProvider:
    provider = os.environ.get("SMARTSAVE_LLM_PROVIDER", "openai").lower()

    if provider == "openai":
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY not set")
        model = os.environ.get("SMARTSAVE_LLM_MODEL", "gpt-4o-mini")
        return OpenAIProvider(model=model, api_key=api_key)

    if provider == "ollama":
        model = os.environ.get("SMARTSAVE_LLM_MODEL", "phi3:mini")
        url = os.environ.get("OLLAMA_URL", _OLLAMA_URL)
        return OllamaProvider(model=model, url=url)

    if provider == "huggingface":
        token = os.environ.get("HF_API_TOKEN")
        model = os.environ.get("SMARTSAVE_LLM_MODEL", "Qwen/Qwen3-32B")
        return HuggingFaceProvider(model=model, token=token)

    raise RuntimeError(f"Unknown LLM provider '{provider}'")


# -----------------------------------------------------------------------------
# Financial context
# -----------------------------------------------------------------------------

def _money(amount: float) -> str:
    return f"{CURRENCY}{amount:.2f}"


def _goal_line(goal: SavingsGoal, today: date) -> str:
    progress = goal.current_amount / goal.target_amount * 100 if goal.target_amount else 0.0
    line = (
        f"{goal.name}: {_money(goal.current_amount)}/{_money(goal.target_amount)} "
        f"({progress:.1f}%)"
    )
    left = months_left(goal, today)
    if left is not None:
        line += f" ({left} months left, need {_money(monthly_need(goal, today))}/month)"
    return line


def financial_context(
    transactions: List[Transaction],
    budgets: List[Budget],
    goals: List[SavingsGoal],
    today: date | None = None,
) -> str:
    """Plain-text summary of the user's finances handed to the assistant."""
    today = today or date.today()
    data = prepare_financial_data(transactions, budgets, today)

    summary = "\n".join(
        [
            "Financial summary:",
            f"- Total income (3 months): {_money(data.average_monthly_income * 3)} "
            f"(avg {_money(data.average_monthly_income)}/month)",
            f"- Total expenses (3 months): {_money(data.average_monthly_expenses * 3)} "
            f"(avg {_money(data.average_monthly_expenses)}/month)",
            f"- Savings rate: {data.savings_rate:.1f}%",
            "- Budget utilization: "
            + ", ".join(f"{b.category}: {b.percent_used:.0f}%" for b in data.budgets),
        ]
    )

    top = ", ".join(
        f"{c.category}: {_money(c.amount)}" for c in data.top_expense_categories[:5]
    )
    months = ", ".join(f"{m.month}: {_money(m.total)}" for m in data.monthly_expenses)
    tx_summary = (
        f"Recent transactions summary (past 3 months): {len(data.transactions)} transactions.\n"
        f"Top expense categories: {top}.\n"
        f"Monthly expenses: {months}."
    )

    if data.budgets:
        budget_summary = "Budgets: " + ", ".join(
            f"{b.category}: {_money(data.category_totals.get(b.category, 0.0))}/"
            f"{_money(b.amount)} ({b.percent_used:.1f}% used) {b.period}"
            for b in data.budgets
        ) + "."
    else:
        budget_summary = "No budgets set."

    if goals:
        goals_summary = "Savings goals: " + "\n".join(_goal_line(g, today) for g in goals) + "."
    else:
        goals_summary = "No savings goals set."

    return f"{summary}\n\n{tx_summary}\n\n{budget_summary}\n\n{goals_summary}"


class FinanceAssistant:
    """Answers questions about the user's finances through an LLM provider."""

    def __init__(self, client: LLMClient | None = None) -> None:
        self._client = client

    def build_messages(self, question: str, context: str) -> List[dict]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT.format(context=context)},
            {"role": "user", "content": question},
        ]

    def ask(
        self,
        question: str,
        transactions: List[Transaction],
        budgets: List[Budget],
        goals: List[SavingsGoal],
        today: date | None = None,
    ) -> str:
        if not question or not question.strip():
            raise ValueError("Missing question for the assistant")
        try:
            client = self._client or LLMClient()
        except RuntimeError as e:
            logger.error("Assistant unavailable: %s", e)
            return NOT_CONFIGURED_MESSAGE

        context = financial_context(transactions, budgets, goals, today)
        try:
            out = client.chat(self.build_messages(question, context))
        except Exception:
            logger.exception("Error contacting LLM")
            return ERROR_MESSAGE
        return out or EMPTY_MESSAGE
