"""
Web Interface for Frame Comparison
"""

import logging
import os
import re
import sys
import tempfile
import uuid
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from flask import Flask, render_template, request, jsonify, send_file
from core.raster import RasterDecodeError, SizeMismatch, decode_raster
from utils.file_utils import write_json
from visual.compare_images import ImageComparator, pair_label

logger = logging.getLogger(__name__)

app = Flask(__name__)

# Use system temp directory instead of local uploads
TEMP_DIR = Path(tempfile.gettempdir()) / 'motion_forensics'
TEMP_DIR.mkdir(exist_ok=True)

REPORT_ID = re.compile(r'[0-9a-f]{32}')

def report_path(report_id):
    return TEMP_DIR / f'report-{report_id}.json'

def read_threshold(form):
    raw = form.get('threshold', '').strip()
    if not raw:
        return None
    return float(raw)

@app.route('/')
def index():
    """Render the upload page."""
    return render_template('index.html')

@app.route('/compare', methods=['POST'])
def compare():
    """Compare two uploaded frames."""
    frame_a = request.files.get('frame_a')
    frame_b = request.files.get('frame_b')
    if not frame_a or not frame_b or not frame_a.filename or not frame_b.filename:
        return jsonify({'error': 'Both frame_a and frame_b images are required'}), 400

    try:
        threshold = read_threshold(request.form)
    except ValueError:
        return jsonify({'error': 'threshold must be a number'}), 400

    try:
        frames = {
            'a': decode_raster(frame_a.read()),
            'b': decode_raster(frame_b.read()),
        }
        comparator = ImageComparator() if threshold is None else ImageComparator(threshold=threshold)
        results = comparator.compare_frames(frames, pairs=[('a', 'b')])
    except RasterDecodeError as e:
        return jsonify({'error': str(e)}), 400
    except SizeMismatch as e:
        return jsonify({
            'error': str(e),
            'sizes': {'frame_a': list(e.first), 'frame_b': list(e.second)},
        }), 400
    except Exception as e:
        logger.error(f"Comparison failed: {str(e)}", exc_info=True)
        return jsonify({'error': str(e)}), 500

    label = pair_label('a', 'b')
    report_data = {
        'frames': {'a': frame_a.filename, 'b': frame_b.filename},
        'pixelDiff': {label: results['pixelDiff'][label].to_dict()},
        'edgeDiff': {label: results['edgeDiff'][label].to_dict()},
    }
    report_id = uuid.uuid4().hex
    write_json(report_data, report_path(report_id))

    return jsonify({
        'success': True,
        'pixelDiff': report_data['pixelDiff'][label],
        'edgeDiff': report_data['edgeDiff'][label],
        'report_id': report_id,
        'report_url': f'/download/report/{report_id}'
    })

def send_report(path):
    return send_file(
        path,
        mimetype='application/json',
        as_attachment=True,
        download_name='frame_comparison_report.json'
    )

@app.route('/download/report/<report_id>')
def download_report(report_id):
    """Download the report of one comparison."""
    path = report_path(report_id)
    if REPORT_ID.fullmatch(report_id) and path.exists():
        return send_report(path)
    return jsonify({'error': 'No report available'}), 404

@app.route('/download/report')
def download_latest_report():
    """Download the most recent comparison report."""
    reports = sorted(TEMP_DIR.glob('report-*.json'), key=lambda p: p.stat().st_mtime)
    if reports:
        return send_report(reports[-1])
    return jsonify({'error': 'No report available'}), 404


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    port = int(os.environ.get("PORT", 5000))
    app.run(host='0.0.0.0', port=port)
