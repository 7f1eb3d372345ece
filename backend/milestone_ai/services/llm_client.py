"""Generative-language boundary: prompt in, raw plan text out."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import openai

from milestone_ai.core.config import settings
from milestone_ai.services.errors import PlanLLMError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are Milestone.AI, a strategic planner and productivity coach. "
    "You turn a long-term goal into a realistic 90-day roadmap: three months of milestones, "
    "four weekly objectives per month and specific, actionable daily tasks. "
    "Tasks must have a clear done state."
)

JSON_FORMAT_INSTRUCTIONS = """\
Return ONLY valid JSON, with no text before or after it and no code fences.
The JSON object must have this structure:
{
  "months": [
    {
      "title": "Month 1: [DESCRIPTIVE TITLE]",
      "weeks": [
        {
          "title": "Week 1: [SPECIFIC FOCUS]",
          "days": [
            {"title": "Day 1", "tasks": [{"title": "Specific task description", "completed": false}]}
          ]
        }
      ]
    }
  ]
}
Include 3 months, 4 weeks per month and 7 days per week.
Month titles MUST follow 'Month X: Title' and week titles 'Week X: Focus'."""

MARKDOWN_FORMAT_INSTRUCTIONS = """\
Format the plan in Markdown using exactly these headings and bullets:
# Goal: [the goal]
## Month 1: [Milestone title]
### Week 1: [Objective title]
- Day 1: [Task description]
- Day 2: [Task description]
(up to Day 7, 4 weeks per month, 3 months)"""

RESPONSE_FORMATS = {"json": JSON_FORMAT_INSTRUCTIONS, "markdown": MARKDOWN_FORMAT_INSTRUCTIONS}
HISTORY_ROLES = {"user": "user", "assistant": "assistant", "system": "assistant"}
MAX_CONTEXT_TITLES = 12


@dataclass
class LLMSession:
    """Per-session state shared by the calls one user interaction makes."""

    key_verified: bool = False


def build_plan_prompt(goal: str, response_format: str = "json", prior_plan: Optional[Dict[str, Any]] = None) -> str:
    instructions = RESPONSE_FORMATS.get(response_format, JSON_FORMAT_INSTRUCTIONS)
    prompt = f'Generate a structured 90-day plan for the following goal: "{goal.strip()}"\n\n{instructions}'
    context = summarize_prior_plan(prior_plan)
    if context:
        prompt = f"{prompt}\n\nThe user already has this plan; refine it rather than starting over:\n{context}"
    return prompt


def summarize_prior_plan(plan: Optional[Dict[str, Any]]) -> str:
    """Compact outline (goal plus month/week titles) of an existing plan."""
    if not isinstance(plan, dict) or not isinstance(plan.get("months"), list):
        return ""
    lines: List[str] = []
    if plan.get("goal"):
        lines.append(f"Goal: {plan['goal']}")
    for month in plan["months"]:
        if not isinstance(month, dict):
            continue
        lines.append(f"- {month.get('title') or 'Month'}")
        weeks = month.get("weeks") if isinstance(month.get("weeks"), list) else []
        for week in weeks:
            if isinstance(week, dict) and week.get("title"):
                lines.append(f"  - {week['title']}")
        if len(lines) > MAX_CONTEXT_TITLES * 2:
            break
    return "\n".join(lines)


def history_to_messages(history: Optional[Sequence[Dict[str, Any]]]) -> List[Dict[str, str]]:
    messages: List[Dict[str, str]] = []
    for entry in history or []:
        if not isinstance(entry, dict):
            continue
        content = entry.get("content")
        if not isinstance(content, str) or not content.strip():
            continue
        role = HISTORY_ROLES.get(str(entry.get("role", "user")).lower(), "user")
        messages.append({"role": role, "content": content})
    return messages


class PlanLLMClient:
    """Thin wrapper around the OpenAI chat-completions API."""

    def __init__(
        self,
        client: Any,
        *,
        model: str | None = None,
        temperature: float | None = None,
        response_format: str | None = None,
        session: LLMSession | None = None,
        verify_key: bool | None = None,
    ) -> None:
        self.client = client
        self.model = model or settings.openai_model
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.response_format = response_format or settings.plan_response_format
        self.session = session or LLMSession()
        self.verify_key = settings.llm_verify_key if verify_key is None else verify_key

    def ensure_access(self) -> None:
        """Probe the API key once per session before the expensive plan call."""
        if not self.verify_key or self.session.key_verified:
            return
        try:
            self.client.models.retrieve(self.model)
        except Exception as exc:
            raise PlanLLMError(f"API key check failed: {exc}") from exc
        self.session.key_verified = True
        logger.debug("API key verified for model %s.", self.model)

    def generate_plan_text(
        self,
        goal: str,
        *,
        history: Optional[Sequence[Dict[str, Any]]] = None,
        prior_plan: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Return the model's raw plan text for ``goal``."""
        self.ensure_access()
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend(history_to_messages(history))
        messages.append({"role": "user", "content": build_plan_prompt(goal, self.response_format, prior_plan)})

        request: Dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": messages,
        }
        if self.response_format == "json":
            request["response_format"] = {"type": "json_object"}

        try:
            completion = self.client.chat.completions.create(**request)
        except Exception as exc:
            raise PlanLLMError(f"Plan generation request failed: {exc}") from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise PlanLLMError("Plan generation returned an empty response")
        logger.debug("Raw plan response: %s", content[:500])
        return content


def get_plan_llm_client(session: LLMSession | None = None) -> PlanLLMClient | None:
    """Return a client bound to the configured API key, or None without one."""
    api_key = settings.openai_api_key
    if not api_key:
        logger.warning("OPENAI_API_KEY missing; plans will use the fallback template.")
        return None
    return PlanLLMClient(openai.OpenAI(api_key=api_key), session=session)

