import sys
import os
import io
import json
import pytest
import numpy as np
from PIL import Image
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
import web.app as web_app

def png_file(level, width=6, height=4):
    pixels = np.full((height, width, 4), level, dtype=np.uint8)
    pixels[..., 3] = 255
    buf = io.BytesIO()
    Image.fromarray(pixels).save(buf, format='PNG')
    buf.seek(0)
    return buf

@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(web_app, 'TEMP_DIR', tmp_path)
    web_app.app.config['TESTING'] = True
    with web_app.app.test_client() as client:
        yield client

def post_frames(client, frame_a, frame_b, **form):
    data = dict(form)
    data['frame_a'] = (frame_a, 'a.png')
    data['frame_b'] = (frame_b, 'b.png')
    return client.post('/compare', data=data, content_type='multipart/form-data')

def test_index_page(client):
    response = client.get('/')
    assert response.status_code == 200
    assert b'frame_a' in response.data

def test_compare_frames(client, tmp_path):
    response = post_frames(client, png_file(0), png_file(255))
    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True
    assert body['pixelDiff'] == {'threshold': 20, 'changedPercent': 100.0, 'meanAbsDiff': 255.0}
    assert body['edgeDiff']['changedPercent'] == 0.0
    assert body['report_url'] == f"/download/report/{body['report_id']}"
    saved = json.loads((tmp_path / f"report-{body['report_id']}.json").read_text(encoding='utf-8'))
    assert saved['frames'] == {'a': 'a.png', 'b': 'b.png'}

def test_custom_threshold(client):
    response = post_frames(client, png_file(0), png_file(10), threshold='5')
    assert response.get_json()['pixelDiff']['threshold'] == 5.0
    assert response.get_json()['pixelDiff']['changedPercent'] == 100.0

def test_bad_threshold(client):
    response = post_frames(client, png_file(0), png_file(10), threshold='lots')
    assert response.status_code == 400

def test_missing_frame(client):
    response = client.post('/compare', data={'frame_a': (png_file(0), 'a.png')},
                           content_type='multipart/form-data')
    assert response.status_code == 400

def test_undecodable_frame(client):
    response = post_frames(client, io.BytesIO(b'garbage'), png_file(0))
    assert response.status_code == 400
    assert 'decode' in response.get_json()['error']

def test_size_mismatch(client):
    response = post_frames(client, png_file(0, width=6), png_file(0, width=7))
    assert response.status_code == 400
    body = response.get_json()
    assert body['sizes'] == {'frame_a': [6, 4], 'frame_b': [7, 4]}
    assert 'PNG size mismatch' in body['error']

def test_download_report(client):
    assert client.get('/download/report').status_code == 404
    post_frames(client, png_file(0), png_file(1))
    response = client.get('/download/report')
    assert response.status_code == 200
    assert json.loads(response.data)['pixelDiff']['a_vs_b']['changedPercent'] == 0.0

def test_each_comparison_keeps_its_own_report(client):
    first = post_frames(client, png_file(0), png_file(255)).get_json()
    second = post_frames(client, png_file(0), png_file(1)).get_json()
    assert first['report_id'] != second['report_id']
    first_report = json.loads(client.get(first['report_url']).data)
    second_report = json.loads(client.get(second['report_url']).data)
    assert first_report['pixelDiff']['a_vs_b']['meanAbsDiff'] == 255.0
    assert second_report['pixelDiff']['a_vs_b']['meanAbsDiff'] == 1.0

def test_unknown_report_id(client):
    assert client.get('/download/report/' + '0' * 32).status_code == 404
    assert client.get('/download/report/..').status_code == 404
