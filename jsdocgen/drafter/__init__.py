"""Drafter subsystem: plans, describes and renders JSDoc comments."""

from jsdocgen.drafter.describer import DescriptionGenerator
from jsdocgen.drafter.engine import JsdocEngine
from jsdocgen.drafter.models import BatchResult, FileEdits, TagRecord, TextEdit
from jsdocgen.drafter.planner import fill_descriptions, plan
from jsdocgen.drafter.renderer import render, wrap_comment

__all__ = [
    "BatchResult",
    "DescriptionGenerator",
    "FileEdits",
    "JsdocEngine",
    "TagRecord",
    "TextEdit",
    "fill_descriptions",
    "plan",
    "render",
    "wrap_comment",
]
