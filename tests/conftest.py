import fitz
import pytest
from fastapi.testclient import TestClient

from pdftools.main import app

A4_WIDTH = 595
A4_HEIGHT = 842


def build_pdf(pages=1, width=A4_WIDTH, height=A4_HEIGHT, text=None, text_at=(72, 72)):
    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page(width=width, height=height)
        if text:
            page.insert_text(text_at, text.format(n=number), fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def open_pdf():
    opened = []

    def _open(data):
        doc = fitz.open(stream=data, filetype="pdf")
        opened.append(doc)
        return doc

    yield _open
    for doc in opened:
        doc.close()
