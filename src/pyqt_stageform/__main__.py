"""Command line entry point: ``python -m pyqt_stageform preview schema.json``."""

import argparse
import logging
import sys
from dataclasses import replace

from pyqt_stageform import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pyqt_stageform", description="Stage form engine tools")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log render and dispatch traces")
    subparsers = parser.add_subparsers(dest="command", required=True)

    preview = subparsers.add_parser("preview", help="Open a schema in the preview window")
    preview.add_argument("schema", nargs="?", help="Path to a JSON schema file")
    preview.add_argument("--light", action="store_true", help="Use the light color scheme")
    preview.add_argument("--compact", action="store_true", help="Use tighter spacing")
    preview.add_argument("--log-dir", help="Write render timings to this directory")

    check = subparsers.add_parser("check", help="Validate schema files without opening a window")
    check.add_argument("schemas", nargs="+", help="Paths to JSON schema files")
    return parser


def run_check(paths) -> int:
    from pyqt_stageform.schema.loader import load_schema_file
    from pyqt_stageform.schema.model import SchemaError

    status = 0
    for path in paths:
        try:
            schema = load_schema_file(path)
        except (OSError, SchemaError) as e:
            print(f"{path}: {e}")
            status = 1
            continue
        print(f"{path}: ok ({len(schema.stages) or 1} stage(s))")
    return status


def run_preview(args) -> int:
    from PyQt6.QtWidgets import QApplication

    from pyqt_stageform.core.performance_monitor import configure_performance_logging
    from pyqt_stageform.forms.layout_constants import COMPACT_LAYOUT, CURRENT_LAYOUT
    from pyqt_stageform.protocols.form_config import get_form_config, set_form_config
    from pyqt_stageform.theming.color_scheme import ColorScheme
    from pyqt_stageform.widgets.form_preview import FormPreviewWindow

    if args.log_dir:
        set_form_config(replace(get_form_config(), log_dir=args.log_dir))
        configure_performance_logging()

    app = QApplication.instance() or QApplication(sys.argv[:1])
    scheme = ColorScheme.create_light_theme() if args.light else ColorScheme.create_dark_theme()
    layout = COMPACT_LAYOUT if args.compact else CURRENT_LAYOUT
    window = FormPreviewWindow(color_scheme=scheme, layout_config=layout)
    if args.schema:
        window.load_schema_file(args.schema)
    window.resize(720, 820)
    window.show()
    return app.exec()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    if args.command == "check":
        return run_check(args.schemas)
    return run_preview(args)


if __name__ == "__main__":
    sys.exit(main())
