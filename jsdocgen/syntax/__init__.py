from .classifier import DeclarationClassifier, iter_candidates, locate
from .inference import TypeInferencer
from .models import (
    DeclarationKind,
    DeclarationRecord,
    Modifiers,
    ParameterInfo,
    SourceSpan,
    TypeParameterInfo,
)
from .parser import SourceDocument, is_supported
from .types import TypeDescriptor, render_type

__all__ = [
    "DeclarationClassifier",
    "DeclarationKind",
    "DeclarationRecord",
    "Modifiers",
    "ParameterInfo",
    "SourceDocument",
    "SourceSpan",
    "TypeDescriptor",
    "TypeInferencer",
    "TypeParameterInfo",
    "is_supported",
    "iter_candidates",
    "locate",
    "render_type",
]
