"""
Upload Policy and Extraction Tests
"""
import base64

import pytest

from readable.services import pdf_service
from readable.services.pdf_service import UploadPolicy, decode_pdf_base64, extract_text, text_is_meaningful

MB = 1024 * 1024


class TestUploadPolicy:
    """Test the shared upload checks"""

    def test_empty_file(self, pdf_bytes):
        assert UploadPolicy(max_bytes=MB).check(b'') == 'The file is empty'

    def test_too_large(self):
        data = b'%PDF' + b'0' * MB
        assert UploadPolicy(max_bytes=MB).check(data) == 'File too large. Please use a PDF smaller than 1MB'

    def test_wrong_type(self, pdf_bytes):
        policy = UploadPolicy(max_bytes=MB)
        assert policy.check(pdf_bytes, 'text/plain') == 'Please upload a PDF file'
        assert policy.check(b'not a pdf', 'application/pdf') == 'Please upload a PDF file'

    def test_accepts_pdf(self, pdf_bytes):
        policy = UploadPolicy(max_bytes=MB)
        assert policy.check(pdf_bytes, 'application/pdf') == ''
        assert policy.check(pdf_bytes, 'application/octet-stream') == ''

    def test_mode_overrides(self):
        cfg = {
            'MAX_UPLOAD_BYTES': 100,
            'UPLOAD_POLICY_OVERRIDES': {'autism': {'max_bytes': 50}, 'dyslexia': {'require_pdf': False}},
        }
        assert UploadPolicy.for_mode(cfg, 'autism') == UploadPolicy(max_bytes=50)
        assert UploadPolicy.for_mode(cfg, 'adhd') == UploadPolicy(max_bytes=100)
        assert UploadPolicy.for_mode(cfg, 'dyslexia').check(b'plain', 'text/plain') == ''

    def test_default_is_ten_megabytes(self, app):
        assert UploadPolicy.for_mode(app.config, 'adhd').max_bytes == 10 * MB


class TestBase64Documents:
    """Test JSON document decoding"""

    def test_data_url_prefix(self, pdf_bytes):
        value = 'data:application/pdf;base64,' + base64.b64encode(pdf_bytes).decode()
        assert decode_pdf_base64(value) == (pdf_bytes, '')

    @pytest.mark.parametrize('value,error', [
        (None, 'No PDF provided'),
        ('', 'No PDF provided'),
        (123, 'No PDF provided'),
        ('%%%not-base64', 'PDF data is not valid base64'),
    ])
    def test_invalid(self, value, error):
        assert decode_pdf_base64(value) == (b'', error)


class TestExtractText:
    """Test PDF text extraction"""

    def test_meaningful_text(self):
        assert text_is_meaningful('A sentence with plenty of letters in it, long enough.')
        assert not text_is_meaningful('12 34 56 78 90 12 34 56 78 90 12 34 56 78 90')
        assert not text_is_meaningful('Short')

    def test_unreadable_pdf(self, monkeypatch, pdf_bytes):
        def broken(data):
            raise ValueError('EOF marker not found')

        monkeypatch.setattr(pdf_service, 'extract_pdf_text', broken)
        text, err = extract_text(pdf_bytes)
        assert text is None
        assert err == 'Could not read PDF: EOF marker not found'

    def test_no_text(self, monkeypatch, pdf_bytes):
        monkeypatch.setattr(pdf_service, 'extract_pdf_text', lambda data: '')
        assert extract_text(pdf_bytes, ocr_fallback=False) == (None, 'No readable text found in PDF')

    def test_text_layer(self, monkeypatch, pdf_bytes):
        body = 'The water cycle moves water between the sea, the sky and the land.'
        monkeypatch.setattr(pdf_service, 'extract_pdf_text', lambda data: body)
        assert extract_text(pdf_bytes) == (body, '')

    def test_ocr_fallback(self, monkeypatch, pdf_bytes):
        monkeypatch.setattr(pdf_service, 'extract_pdf_text', lambda data: '1 2')
        monkeypatch.setattr(pdf_service, 'ocr_pdf_bytes', lambda data: ('Scanned page text.', ''))
        assert extract_text(pdf_bytes) == ('Scanned page text.', '')

    def test_ocr_unavailable_keeps_thin_text(self, monkeypatch, pdf_bytes):
        monkeypatch.setattr(pdf_service, 'extract_pdf_text', lambda data: 'Hi')
        monkeypatch.setattr(pdf_service, 'ocr_pdf_bytes', lambda data: ('', 'PyMuPDF not available'))
        assert extract_text(pdf_bytes) == ('Hi', '')
