#!/usr/bin/env python3
"""
CASCADE CLI - Run a restoration cascade on a photo from the terminal.
Prints progress as each step completes and exports the results.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from cascade.config import load_settings
from cascade.errors import ConfigError
from cascade.gateway import GeminiGateway
from cascade.images import file_to_data_url
from cascade.models import AppStatus, RunState
from cascade.orchestrator import RestorationCascade
from cascade.report import ReportGenerator


class ProgressPrinter:
    """Observer that prints progress lines and newly completed steps."""

    def __init__(self):
        self._last_progress = ''
        self._printed_steps = 0

    def __call__(self, state: RunState):
        if state.progress and state.progress != self._last_progress:
            print(f"  {state.progress}")
            self._last_progress = state.progress

        for restoration_step in state.steps[self._printed_steps:]:
            print(f"  ✓ Step {restoration_step.step}: {restoration_step.goal}")
            print(f"    Prompt: {restoration_step.prompt}")
        self._printed_steps = len(state.steps)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Restore an old photo with a chain of AI edits."
    )
    parser.add_argument(
        "image",
        type=Path,
        help="Photo to restore",
    )
    parser.add_argument(
        "-i", "--instructions",
        default="",
        help="Optional restoration instructions (e.g. 'Fix the tear on the left side')",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Directory for the exported run (default: <image name>-restored next to the image)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help=".env file to load (default: ./.env)",
    )
    return parser


def main(argv: Optional[List[str]] = None, gateway=None) -> int:
    args = build_parser().parse_args(argv)

    image_path: Path = args.image
    if not image_path.exists():
        print(f"Error: Image not found: {image_path}", file=sys.stderr)
        return 1

    try:
        image_ref = file_to_data_url(image_path)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if gateway is None:
        try:
            gateway = GeminiGateway(load_settings(args.env_file))
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    output_dir = args.output or image_path.parent / f"{image_path.stem}-restored"

    print(f"\n{'='*60}")
    print(f"Restoring: {image_path.name}")
    print(f"{'='*60}\n")

    cascade = RestorationCascade(gateway, on_update=ProgressPrinter())
    state = cascade.run(image_ref, args.instructions)

    report_path = ReportGenerator().export(state, output_dir)

    print()
    if state.status == AppStatus.DONE:
        print(f"✓ Restoration complete: {len(state.steps)} step(s)")
    else:
        print(f"✗ Restoration failed after {len(state.steps)} step(s): {state.error}", file=sys.stderr)
    print(f"  Report: {report_path}\n")

    return 0 if state.status == AppStatus.DONE else 1


if __name__ == '__main__':
    raise SystemExit(main())
