"""Description generator: LLM-written summaries for JSDoc tags."""

from __future__ import annotations

import logging

from jsdocgen.config.models import GenerativeConfig
from jsdocgen.drafter.models import TagRecord
from jsdocgen.errors import GenerationServiceFailure
from jsdocgen.llm.base import LLMProvider
from jsdocgen.syntax.models import DeclarationRecord

logger = logging.getLogger(__name__)

_MAX_SOURCE_CHARS = 2000

_SYSTEM_PROMPT = """\
You write descriptions for JSDoc comments in JavaScript and TypeScript code.

## Writing Rules

1. Reply with plain text only: no Markdown, no JSDoc tags, no comment delimiters
2. One sentence, two at most
3. Describe what the element does or holds, not how it is implemented
4. Write in {language}\
"""

USER_PROMPT_TEMPLATE = """\
Describe {target} of the following {kind} `{name}`.

```
{source}
```\
"""


class DescriptionGenerator:
    """Asks an LLMProvider for tag descriptions.

    Never raises: any provider failure is logged as a GenerationServiceFailure
    and the summary gets the configured placeholder; other tags keep the
    description they already had.
    """

    def __init__(
        self,
        llm: LLMProvider,
        config: GenerativeConfig,
        placeholder: str = "Description placeholder",
    ) -> None:
        self.llm = llm
        self.config = config
        self.placeholder = placeholder

    async def describe(self, record: DeclarationRecord, tag: TagRecord) -> str | None:
        target = _target(tag)
        system = _SYSTEM_PROMPT.format(language=self.config.language)
        user = USER_PROMPT_TEMPLATE.format(
            target=target,
            kind=record.kind.value.replace("_", " "),
            name=record.display_name,
            source=_source_of(record),
        )
        # only the summary falls back to the placeholder; other tags keep theirs
        fallback = self.placeholder if tag.is_summary else tag.description
        try:
            response = await self.llm.generate(
                system=system, user=user, max_tokens=self.config.max_tokens
            )
        except Exception as e:
            failure = GenerationServiceFailure(f"{record.display_name} ({target})", e)
            logger.warning("%s; keeping fallback description", failure)
            return fallback
        text = " ".join(response.content.split())
        return text or fallback


def _target(tag: TagRecord) -> str:
    if tag.is_summary:
        return "the purpose"
    if tag.tag == "param":
        return f"the parameter `{tag.name}`"
    if tag.tag == "template":
        return f"the type parameter `{tag.name}`"
    if tag.tag == "returns":
        return "the return value"
    return f"the @{tag.tag} tag"


def _source_of(record: DeclarationRecord) -> str:
    node = record.node
    if node is None or node.text is None:
        return ""
    text = node.text.decode("utf-8", errors="replace")
    if len(text) > _MAX_SOURCE_CHARS:
        return text[:_MAX_SOURCE_CHARS] + "\n... (truncated)"
    return text
