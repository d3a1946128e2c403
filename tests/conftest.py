"""Shared test fixtures for jsdocgen."""

from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from jsdocgen.config.models import GenerativeConfig, RenderConfiguration
from jsdocgen.drafter.describer import DescriptionGenerator
from jsdocgen.drafter.engine import JsdocEngine
from jsdocgen.llm.base import LLMProvider
from jsdocgen.llm.models import LLMConfig as LLMRuntimeConfig, LLMResponse, TokenUsage
from jsdocgen.syntax.classifier import DeclarationClassifier, iter_candidates
from jsdocgen.syntax.parser import SourceDocument

SAMPLE_TS = """\
import { Base } from "./base";

export interface Shape {
  area(): number;
}

export class Widget extends Base implements Shape {
  private readonly label: string = "w";

  constructor(name: string, size?: number) {
    super();
  }

  area(): number {
    return 1;
  }
}

/** Already documented. */
export function documented(): void {}

export const greet = () => {};

enum Color {
  Red,
  Green = "g",
}
"""


@pytest.fixture
def config():
    return RenderConfiguration()


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 3, 5, 14, 7, 9)


@pytest.fixture
def engine(config, fixed_clock):
    return JsdocEngine(config, clock=fixed_clock)


@pytest.fixture
def sample_text():
    return SAMPLE_TS


@pytest.fixture
def sample_document():
    return SourceDocument(SAMPLE_TS, path=Path("widget.ts"))


@pytest.fixture
def parse():
    """Parse TypeScript source into a SourceDocument."""

    def _parse(text: str, name: str = "sample.ts") -> SourceDocument:
        return SourceDocument(text, path=Path(name))

    return _parse


@pytest.fixture
def classify_first(config):
    """Classify the first candidate declaration of a source snippet."""

    def _classify(text: str, cfg: RenderConfiguration | None = None, name: str = "sample.ts"):
        document = SourceDocument(text, path=Path(name))
        classifier = DeclarationClassifier(document, cfg or config)
        node = next(iter_candidates(document.root))
        return classifier.types.complete(classifier.classify(node))

    return _classify


@pytest.fixture
def mock_llm_provider():
    provider = MagicMock(spec=LLMProvider)
    provider.config = LLMRuntimeConfig(provider="openai", model="test-model")
    provider.generate = AsyncMock(
        return_value=LLMResponse(
            content="Greets the current user.",
            usage=TokenUsage(input_tokens=100, output_tokens=12),
            model="test-model",
        )
    )
    return provider


@pytest.fixture
def describer(mock_llm_provider):
    return DescriptionGenerator(mock_llm_provider, GenerativeConfig())
