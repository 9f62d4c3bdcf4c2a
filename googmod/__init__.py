"""Public package exports for the CommonJS to goog.module converter."""

from .diagnostics import Diagnostic, ModuleStructureError
from .js_formatter import JsRenderOptions, JsWriter
from .loader import Bundle, load_bundle
from .manifest import ModuleRecord, ModulesManifest
from .module_rewriter import (
    ModuleProcessor,
    ModuleResult,
    ProcessorOptions,
    SourceModule,
    render_module,
)
from .naming import AliasTable
from .oracle import StaticOracle, TypeOracle
from .overloads import OverloadMerger, OverloadSet
from .type_translator import TypeTranslator

__all__ = [
    "AliasTable",
    "Bundle",
    "Diagnostic",
    "JsRenderOptions",
    "JsWriter",
    "ModuleProcessor",
    "ModuleRecord",
    "ModuleResult",
    "ModuleStructureError",
    "ModulesManifest",
    "OverloadMerger",
    "OverloadSet",
    "ProcessorOptions",
    "SourceModule",
    "StaticOracle",
    "TypeOracle",
    "TypeTranslator",
    "load_bundle",
    "render_module",
]
