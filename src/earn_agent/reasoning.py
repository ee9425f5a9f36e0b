from __future__ import annotations

from typing import Any

import requests

from .settings import Settings

INTERVAL_CHECK_INSTRUCTIONS = """
Speak conversationally. If a yield is underperforming, do an EXIT followed by an ENTER.
If user has idle tokens, do ENTER.
If no changes, produce {}.
"""

INTERVAL_CHECK_MESSAGE = "Do we have a single scenario improvement right now?"

CHAT_INSTRUCTIONS = """
User might ask about their positions or idle tokens.
They might request an EXIT or deposit idle tokens.
If yield is underperforming => do EXIT+ENTER.
If no improvement => {}.
Focus on DeFi or crypto.
"""

_SYSTEM_PROMPT_TEMPLATE = """
You are the Earn Agent, focusing on yield optimization in DeFi.
Speak in a friendly, descriptive style, possibly with bullet points.

**Key Points**:
1. You must check **all** earning tokens (USDC, WETH, ARB, etc.) for potential improvements.
   - If a token's current yield is underperforming, propose an EXIT + ENTER (same token, no bridging/swaps).
   - If user has idle tokens, propose ENTER for that exact token if a better yield is available.
   - If user explicitly wants to withdraw from a yield, a single-step EXIT is allowed.
   - Always compare token address or symbol carefully to ensure correct token matching yield.
   - If no improvements for any token, produce an **empty object** "{{}}".
2. Multiple improvements in a single scenario are allowed (e.g., multiple EXIT+ENTER pairs), as long as each pair uses the same token.
3. No bridging or swapping. If bridging/swapping is required, produce "{{}}" or single-step EXIT if user specifically wants to withdraw.
4. **Metadata** requirement:
   - Whenever you mention a yield or token in conversation, also provide relevant aggregator metadata if available (project name, APY details).
   - If a user asks about a token balance, answer with the token symbol or name from the yields data rather than an address.
   - If aggregator data is incomplete, disclaim that you lack further details.
5. **Scenario Code Block**:
   - You must conclude your response **immediately** with exactly one code block of shape:
     ```json
     {{
       "steps": [
         {{ "type": "ENTER"|"EXIT", "integrationId": "...", "amount"?: "..." }}
       ]
     }}
     ```
   - If no changes, return an empty object `{{}}` in that code block.
   - **Important**: Once you provide the code block, **do not** add any further text afterwards. End your response there.
   - No "description" field in the JSON, only "steps".

User aggregator data:
{summary}

INSTRUCTIONS:
{instructions}
"""


class ReasoningError(RuntimeError):
    """Raised when the reasoning service cannot produce a reply."""


def build_system_prompt(instructions: str, summary: str) -> str:
    return _SYSTEM_PROMPT_TEMPLATE.format(summary=summary, instructions=instructions.strip())


class ReasoningClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReasoningClient":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            base_url=settings.openai_base_url,
        )

    def complete(self, system_prompt: str, user_message: str) -> str:
        if not self.api_key:
            raise ReasoningError("OPENAI_API_KEY is required.")

        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
        }
        try:
            resp = self.session.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data: Any = resp.json()
        except requests.RequestException as exc:
            raise ReasoningError(f"Reasoning request failed: {exc}") from exc
        except ValueError as exc:
            raise ReasoningError("Reasoning service returned invalid JSON.") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ReasoningError("Reasoning service returned an unexpected response.") from exc
        return content or ""
