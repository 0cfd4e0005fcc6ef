import sys
import os
import json
import numpy as np
from PIL import Image
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
import main

def write_frame(path, level, width=5, height=5):
    pixels = np.full((height, width, 4), level, dtype=np.uint8)
    pixels[..., 3] = 255
    Image.fromarray(pixels).save(path)
    return str(path)

def test_compare_command(tmp_path, capsys):
    a = write_frame(tmp_path / 'first.png', 0)
    b = write_frame(tmp_path / 'second.png', 60)
    c = write_frame(tmp_path / 'third.png', 60)
    assert main.main(['compare', a, b, c, '--threshold', '50']) == 0
    report = json.loads(capsys.readouterr().out)
    assert list(report) == ['frames', 'pixelDiff', 'edgeDiff']
    assert list(report['pixelDiff']) == ['first_vs_second', 'second_vs_third', 'first_vs_third']
    assert report['pixelDiff']['first_vs_second'] == {'threshold': 50.0, 'changedPercent': 100.0, 'meanAbsDiff': 60.0}
    assert report['pixelDiff']['second_vs_third']['changedPercent'] == 0.0

def test_compare_writes_edge_maps_and_html(tmp_path, capsys):
    a = write_frame(tmp_path / 'a.png', 0)
    b = write_frame(tmp_path / 'b.png', 9)
    html = tmp_path / 'report.html'
    assert main.main(['compare', a, b, '--edges-dir', str(tmp_path / 'edges'), '--html', str(html)]) == 0
    assert (tmp_path / 'edges' / 'a.edges.png').exists()
    assert 'a_vs_b' in html.read_text(encoding='utf-8')

def test_failure_prints_error_document(tmp_path, capsys):
    a = write_frame(tmp_path / 'a.png', 0)
    b = write_frame(tmp_path / 'b.png', 0, width=6)
    assert main.main(['compare', a, b]) == 1
    report = json.loads(capsys.readouterr().out)
    assert report['ok'] is False
    assert 'PNG size mismatch' in report['error']
    assert report['stack']

def test_compare_needs_two_images(tmp_path, capsys):
    a = write_frame(tmp_path / 'a.png', 0)
    assert main.main(['compare', a]) == 1
    assert json.loads(capsys.readouterr().out)['ok'] is False

def test_sample_points_fallback():
    args = main.build_parser().parse_args(['verify', 'http://x', '--samplePoints', 'abc'])
    assert args.sample_points is None
    args = main.build_parser().parse_args(['verify', 'http://x', '--samplePoints', '25'])
    assert args.sample_points == 25

def test_verify_command(monkeypatch, tmp_path, capsys):
    calls = {}

    class StubAnalyzer:
        def __init__(self, settings):
            calls['threshold'] = settings.threshold

        def run(self, url, out_dir=None, chrome=None, sample_points=None):
            calls['run'] = (url, out_dir, chrome, sample_points)
            return {'url': url, 'pixelDiff': {}}

    monkeypatch.setattr(main, 'MotionAnalyzer', StubAnalyzer)
    code = main.main(['verify', 'http://x', '--outDir', str(tmp_path), '--samplePoints', '12', '--threshold', '7'])
    assert code == 0
    assert calls['threshold'] == 7.0
    assert calls['run'] == ('http://x', str(tmp_path), None, 12)
    assert json.loads(capsys.readouterr().out)['url'] == 'http://x'
