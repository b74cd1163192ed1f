import base64

import pytest
import requests

from records.services import gemini


def test_parse_json_text_strips_fences():
    text = '```json\n{"doctor_name": "Dr. Rao", "confidence": 0.9}\n```'
    assert gemini.parse_json_text(text) == {'doctor_name': 'Dr. Rao', 'confidence': 0.9}


def test_parse_json_text_keeps_raw_text_on_failure():
    parsed = gemini.parse_json_text('The image is blurry.')
    assert parsed == {'raw_text': 'The image is blurry.', 'json_parse_error': True}


def test_normalizers_on_parse_failure():
    broken = {'raw_text': 'x', 'json_parse_error': True}
    assert gemini.normalize_prescription(broken) == {'confidence': 0.3}
    assert gemini.normalize_receipt(broken, 'medicine') == {'receipt_type': 'medicine', 'confidence': 0.3}
    assert gemini.normalize_test_result(broken) == {'confidence': 0.3}


def test_normalize_receipt_fills_defaults():
    data = gemini.normalize_receipt({'total_amount': 250, 'doctor_name': 'Dr. Rao'}, 'consultation')
    assert data['amount'] == 250
    assert data['medicines'] == []
    assert data['payment_method'] == ''
    assert data['confidence'] == 0.7


def test_receipt_prompt_is_type_specific():
    assert 'medicine' in gemini.receipt_prompt('medicine')
    assert gemini.receipt_prompt('medicine') != gemini.receipt_prompt('test')


def test_load_document_decodes_data_uri():
    payload = 'data:application/pdf;base64,' + base64.b64encode(b'%PDF-1.4').decode()
    data, mime_type = gemini.load_document(file_base64=payload, file_type='application/pdf')
    assert data == b'%PDF-1.4'
    assert mime_type == 'application/pdf'


def test_load_document_requires_a_source():
    with pytest.raises(gemini.GeminiError):
        gemini.load_document()


def test_download_failure_raises(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError('unreachable')

    monkeypatch.setattr(gemini.requests, 'get', boom)
    with pytest.raises(gemini.GeminiError, match='Failed to fetch file'):
        gemini.download_file('https://files.example.com/x.jpg')


@pytest.mark.parametrize('url', ['file:///etc/passwd', 'gopher://localhost:6379/_INFO', '/media/doc.jpg'])
def test_download_only_fetches_web_urls(monkeypatch, url):
    monkeypatch.setattr(gemini.requests, 'get', lambda *a, **kw: pytest.fail('must not fetch'))
    with pytest.raises(gemini.GeminiError, match='Only http and https'):
        gemini.download_file(url)


def test_missing_api_key(settings):
    settings.GEMINI_API_KEY = ''
    with pytest.raises(gemini.GeminiError, match='GEMINI_API_KEY'):
        gemini.extract_prescription(file_base64=base64.b64encode(b'img').decode())


def test_extract_uses_model_reply(settings, monkeypatch):
    settings.GEMINI_API_KEY = 'test-key'
    prompts = []

    def fake_generate(prompt, data, mime_type):
        prompts.append((prompt, data, mime_type))
        return '{"test_name": "Lipid Profile", "parameters": [{"parameter_name": "LDL", "value": 130}]}'

    monkeypatch.setattr(gemini, 'generate', fake_generate)
    result = gemini.extract_test_result(file_base64=base64.b64encode(b'img').decode(), file_type='image/png')

    assert result['test_name'] == 'Lipid Profile'
    assert result['parameters'][0]['parameter_name'] == 'LDL'
    assert result['confidence'] == 0.7
    assert prompts[0][0] == gemini.TEST_RESULT_PROMPT
    assert prompts[0][1:] == (b'img', 'image/png')
