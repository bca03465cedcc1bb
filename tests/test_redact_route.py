import json

import pytest

from pdftools.editor import RedactionEditor

URL = "/api/pdf/redact"


def post_redact(client, pdf_bytes, areas, color=None, filename="doc.pdf", **extra):
    data = {"redactionAreas": json.dumps(areas), **extra}
    if color is not None:
        data["redactionColor"] = color
    files = {"pdf": (filename, pdf_bytes, "application/pdf")}
    return client.post(URL, files=files, data=data)


A4_AREA = {"page": 1, "x": 100, "y": 100, "width": 200, "height": 50}


def test_redacts_a4_page_in_red(client, make_pdf, open_pdf):
    resp = post_redact(client, make_pdf(), [A4_AREA], color="red")

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.headers["content-disposition"] == 'attachment; filename="redacted.pdf"'
    page = open_pdf(resp.content)[0]
    (drawing,) = page.get_drawings()
    assert drawing["fill"] == pytest.approx((1, 0, 0))
    pdf_rect = drawing["rect"] * ~page.transformation_matrix
    assert tuple(pdf_rect) == pytest.approx((100, 692, 300, 742))


def test_default_and_unknown_colors_paint_black(client, make_pdf, open_pdf):
    for color in (None, "magenta"):
        resp = post_redact(client, make_pdf(), [A4_AREA], color=color)
        assert resp.status_code == 200
        (drawing,) = open_pdf(resp.content)[0].get_drawings()
        assert drawing["fill"] == pytest.approx((0, 0, 0))


def test_out_of_range_page_is_skipped(client, make_pdf, open_pdf):
    areas = [A4_AREA, dict(A4_AREA, page=7)]
    resp = post_redact(client, make_pdf(pages=1), areas)

    assert resp.status_code == 200
    assert len(open_pdf(resp.content)[0].get_drawings()) == 1


def test_empty_area_list_is_rejected(client, make_pdf):
    resp = post_redact(client, make_pdf(), [])

    assert resp.status_code == 400
    assert resp.json() == {"error": "No redaction areas provided"}


def test_missing_area_field_is_rejected(client, make_pdf):
    files = {"pdf": ("doc.pdf", make_pdf(), "application/pdf")}
    resp = client.post(URL, files=files)

    assert resp.status_code == 400
    assert "error" in resp.json()


def test_missing_file_is_rejected_before_parsing(client, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("PDF should not be processed")

    monkeypatch.setattr("pdftools.api.redact_pdf", fail)
    resp = client.post(URL, data={"redactionAreas": json.dumps([A4_AREA])})

    assert resp.status_code == 400
    assert resp.json() == {"error": "No PDF file uploaded"}


def test_non_pdf_upload_is_rejected(client):
    files = {"pdf": ("notes.txt", b"hello", "text/plain")}
    resp = client.post(URL, files=files, data={"redactionAreas": json.dumps([A4_AREA])})

    assert resp.status_code == 400


def test_broken_pdf_is_a_server_error(client):
    resp = post_redact(client, b"%PDF-1.4 definitely broken", [A4_AREA])

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to redact PDF"}


def test_malformed_area_json_is_a_server_error(client, make_pdf):
    files = {"pdf": ("doc.pdf", make_pdf(), "application/pdf")}
    resp = client.post(URL, files=files, data={"redactionAreas": "[{not json"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to redact PDF"}


def test_canvas_scale_maps_preview_pixels_to_points(client, make_pdf, open_pdf):
    area = {"page": 1, "x": 200, "y": 200, "width": 400, "height": 100}
    resp = post_redact(client, make_pdf(), [area], canvasScale="2")

    assert resp.status_code == 200
    page = open_pdf(resp.content)[0]
    (drawing,) = page.get_drawings()
    assert tuple(drawing["rect"]) == pytest.approx((100, 100, 300, 150))


def test_remove_content_strips_text(client, make_pdf, open_pdf):
    source = make_pdf(text="SECRET", text_at=(110, 130))
    resp = post_redact(client, source, [A4_AREA], removeContent="true")

    assert resp.status_code == 200
    assert "SECRET" not in open_pdf(resp.content)[0].get_text()


def test_same_request_twice_renders_identically(client, make_pdf, open_pdf):
    source = make_pdf(pages=2, text="Account {n}")
    areas = [A4_AREA, dict(A4_AREA, page=2, y=300)]

    first = post_redact(client, source, areas, color="gray")
    second = post_redact(client, source, areas, color="gray")

    assert first.status_code == second.status_code == 200
    for page_a, page_b in zip(open_pdf(first.content), open_pdf(second.content)):
        assert page_a.get_pixmap().samples == page_b.get_pixmap().samples


def test_editor_output_round_trips_through_route(client, make_pdf, open_pdf):
    editor = RedactionEditor(page_count=1, color="red")
    # drag from bottom-right to top-left
    editor.begin_drag(300, 150)
    editor.update_drag(100, 100)
    editor.commit_drag()

    files = {"pdf": ("doc.pdf", make_pdf(), "application/pdf")}
    resp = client.post(URL, files=files, data=editor.form_fields())

    assert resp.status_code == 200
    page = open_pdf(resp.content)[0]
    (drawing,) = page.get_drawings()
    assert drawing["fill"] == pytest.approx((1, 0, 0))
    pdf_rect = drawing["rect"] * ~page.transformation_matrix
    assert tuple(pdf_rect) == pytest.approx((100, 692, 300, 742))


def test_nan_coordinates_are_not_painted(client, make_pdf):
    files = {"pdf": ("doc.pdf", make_pdf(), "application/pdf")}
    raw = '[{"page": 1, "x": NaN, "y": 100, "width": 200, "height": 50}]'
    resp = client.post(URL, files=files, data={"redactionAreas": raw})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to redact PDF"}


def test_nan_canvas_scale_is_rejected(client, make_pdf):
    resp = post_redact(client, make_pdf(), [A4_AREA], canvasScale="nan")

    assert resp.status_code == 400
    assert "Canvas scale" in resp.json()["error"]
