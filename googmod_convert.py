#!/usr/bin/env python3
"""Command-line entry point for converting CommonJS bundles to goog.module."""

from __future__ import annotations

import argparse
import json
import logging
import posixpath
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from googmod import JsRenderOptions, ModuleProcessor, ModulesManifest, ModuleStructureError, load_bundle
from googmod.path_utils import file_name_to_module_id, strip_extension

logger = logging.getLogger("googmod_convert")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("bundle", type=Path, help="JSON bundle written by the front-end")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Write one .js file per module below this directory instead of stdout",
    )
    parser.add_argument(
        "--manifest",
        type=Path,
        default=None,
        help="Write the modules manifest (registered and referenced namespaces) as JSON",
    )
    parser.add_argument(
        "--diagnostics",
        type=Path,
        default=None,
        help="Write the collected diagnostics as JSON",
    )
    parser.add_argument("--es5", action="store_true", help="Emit var bindings and no module/exports prologue")
    parser.add_argument(
        "--js-transpilation",
        action="store_true",
        help="Input is plain JavaScript: scripts pass through and tslib is not required",
    )
    parser.add_argument(
        "--fileoverview",
        action="store_true",
        help="Prefix every module with an @fileoverview block",
    )
    parser.add_argument("--indent", type=int, default=4, help="Spaces per indentation level")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log rewrite decisions")
    return parser.parse_args(argv)


def output_path(output_dir: Path, root_dir: str, file_name: str) -> Path:
    relative = file_name_to_module_id(root_dir, file_name).lstrip("/")
    relative = posixpath.normpath(strip_extension(relative))
    # Files outside the root still land below the output directory.
    while relative.startswith("../"):
        relative = relative[3:]
    return output_dir / f"{relative}.js"


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        bundle = load_bundle(args.bundle)
    except (OSError, ModuleStructureError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    if args.es5:
        bundle.options.es5_mode = True
    if args.js_transpilation:
        bundle.options.js_transpilation = True

    render_options = JsRenderOptions(indent=" " * args.indent, emit_fileoverview=args.fileoverview)
    manifest = ModulesManifest()
    diagnostics: List[dict] = []
    rendered: List[str] = []
    for module in bundle.modules:
        processor = ModuleProcessor(bundle.oracle_for(module), bundle.options, manifest)
        try:
            result = processor.process(module)
        except ModuleStructureError as exc:
            print(f"error: {module.file_name}: {exc}", file=sys.stderr)
            return 1
        diagnostics.extend(
            {"file_name": item.file_name, "category": item.category, "message": item.message, "subject": item.subject}
            for item in result.diagnostics
        )
        render_options.source_note = module.file_name
        text = result.render(render_options)
        if args.output_dir is None:
            rendered.append(text)
            continue
        target = output_path(args.output_dir, bundle.options.root_dir, module.file_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, "utf-8")
        logger.info("wrote %s", target)

    if rendered:
        sys.stdout.write("\n".join(rendered))
    if args.manifest:
        manifest.write(args.manifest)
    if args.diagnostics:
        args.diagnostics.write_text(json.dumps(diagnostics, indent=2) + "\n", "utf-8")
    print(f"converted {len(bundle.modules)} module(s)", file=sys.stderr)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
