#!/usr/bin/env python3
"""
CASCADE Report - Before/after reports for a restoration run.
Renders the completed steps to HTML and exports the run's images.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from cascade.images import save_image_ref
from cascade.models import RunState

PACKAGE_DIR = Path(__file__).parent
TEMPLATES_DIR = PACKAGE_DIR / 'templates'
STATIC_DIR = PACKAGE_DIR / 'static'


class ReportGenerator:
    """Renders run reports and writes them, with their images, to disk."""

    def __init__(self, templates_dir: Optional[Path] = None):
        """Initialize the generator."""
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(['html']),
        )

    def _stylesheet(self) -> str:
        css_path = STATIC_DIR / 'style.css'
        if css_path.exists():
            return css_path.read_text()
        return ''

    def render(self, state: RunState, title: str = 'Restoration Report') -> str:
        """Render a standalone HTML page for the run, images inlined."""
        template = self.jinja_env.get_template('report.html')
        return template.render(
            title=title,
            state=state,
            steps=state.steps,
            stylesheet=self._stylesheet(),
            generated_at=datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        )

    def export(self, state: RunState, output_dir: Path) -> Path:
        """
        Write a run to disk.

        Args:
            state: Snapshot of the run to export
            output_dir: Directory to write into (created if missing)

        Returns:
            Path to the written report.html
        """
        output_dir.mkdir(parents=True, exist_ok=True)

        manifest: Dict[str, Any] = {
            'status': state.status.value,
            'error': state.error,
            'original_image': None,
            'steps': [],
        }

        if state.original_image:
            original_path = save_image_ref(state.original_image, output_dir / 'original')
            manifest['original_image'] = original_path.name

        steps: List[Dict[str, Any]] = []
        for restoration_step in state.steps:
            after_path = save_image_ref(restoration_step.after_image, output_dir / f'step-{restoration_step.step}')
            steps.append({
                'step': restoration_step.step,
                'goal': restoration_step.goal,
                'prompt': restoration_step.prompt,
                'image': after_path.name,
            })
        manifest['steps'] = steps

        with open(output_dir / 'steps.json', 'w') as f:
            json.dump(manifest, f, indent=2)

        report_path = output_dir / 'report.html'
        with open(report_path, 'w') as f:
            f.write(self.render(state))

        return report_path
