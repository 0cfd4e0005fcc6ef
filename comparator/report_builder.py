"""
Report Builder Module
Generates motion check reports as JSON and as HTML (Jinja2 templates).
"""

import json
import logging
import traceback
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.point_cloud import PositionDelta
from core.visual_diff import DiffResult

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / 'templates'


def error_report(exc: BaseException) -> Dict[str, Any]:
    """Failure document printed in place of a report."""
    return {
        'ok': False,
        'error': str(exc) or exc.__class__.__name__,
        'stack': ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__)) or None,
    }


class ReportBuilder:
    def __init__(self, url: Optional[str] = None, viewport: Optional[Dict[str, int]] = None,
                 sample_points: Optional[int] = None, out_dir: Union[str, Path, None] = None,
                 executable_path: Optional[str] = None):
        self.env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)),
                               autoescape=select_autoescape(['html']))
        self.template = 'report.html'
        self.data = {
            'url': url,
            'viewport': viewport,
            'overlayGone': False,
            'overlayWaitMs': None,
            'heartOk': None,
            'cdnsTried': None,
            'frames': {},
            'pixelDiff': {},
            'edgeDiff': {},
            'positionDelta': {
                'samplePoints': sample_points,
                'avgAbsDelta': {},
                'comparedLength': {},
            },
            'meta': {
                'outDir': str(out_dir) if out_dir is not None else None,
                'driver': 'playwright',
                'executablePath': executable_path,
            },
        }

    def record_readiness(self, overlay_gone: bool, wait_ms: int) -> None:
        self.data['overlayGone'] = overlay_gone
        self.data['overlayWaitMs'] = wait_ms

    def record_snapshot(self, snapshot: Dict[str, Any]) -> None:
        self.data['heartOk'] = snapshot.get('heartOk')
        self.data['cdnsTried'] = snapshot.get('cdnsTried')

    def add_frame(self, label: str, path: Union[str, Path]) -> None:
        self.data['frames'][label] = str(path)

    def collect_metrics(self, comparison_results: Dict[str, Dict[str, DiffResult]]):
        """Collect pixel and edge DiffResults keyed by comparison label."""
        for section in ('pixelDiff', 'edgeDiff'):
            for label, result in comparison_results.get(section, {}).items():
                self.data[section][label] = result.to_dict()

    def add_position_deltas(self, deltas: Dict[str, PositionDelta]) -> None:
        section = self.data['positionDelta']
        for layer, delta in deltas.items():
            section['avgAbsDelta'][layer] = delta.avg_abs_delta
            section['comparedLength'][layer] = delta.compared_length

    def to_dict(self) -> Dict[str, Any]:
        return json.loads(json.dumps(self.data))

    def generate_json_report(self, output_path: Union[str, Path, None] = None) -> str:
        """Generate JSON report with raw comparison data."""
        report_text = json.dumps(self.data, indent=2)
        if output_path:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(report_text + '\n')
            logger.info(f"JSON report written to {output_path}")
        return report_text

    def generate_html_report(self, output_path: Union[str, Path, None] = None) -> str:
        """Generate HTML report with per-pair pixel, edge and position tables."""
        html = self.env.get_template(self.template).render(report=self.data)
        if output_path:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(html)
            logger.info(f"HTML report written to {output_path}")
        return html
