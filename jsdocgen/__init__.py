"""jsdocgen - JSDoc comment generation for JavaScript and TypeScript declarations."""

from jsdocgen.config import RenderConfiguration, load_config
from jsdocgen.drafter import DescriptionGenerator, JsdocEngine
from jsdocgen.llm import LLMProvider, create_llm_provider
from jsdocgen.output import EditWriter, apply_edits
from jsdocgen.syntax import DeclarationClassifier, SourceDocument
from jsdocgen.workspace import CancellationToken, WorkspaceCrawler

__version__ = "0.1.0"

__all__ = [
    "CancellationToken",
    "DeclarationClassifier",
    "DescriptionGenerator",
    "EditWriter",
    "JsdocEngine",
    "LLMProvider",
    "RenderConfiguration",
    "SourceDocument",
    "WorkspaceCrawler",
    "apply_edits",
    "create_llm_provider",
    "load_config",
]
