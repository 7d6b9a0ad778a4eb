from backend.config import settings


def _pdf(name: str, content: bytes):
    return ("reports", (name, content, "application/pdf"))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_analyze_returns_one_result_per_file(client, fake_pdf_pages):
    fake_pdf_pages[b"%PDF glucose"] = ["Report Date: 2024-01-10\nGlucose: 85 mg/dL"]
    fake_pdf_pages[b"%PDF lipids"] = ["Cholesterol: 180 (Reference Range: 125-200)", "HDL: 55 mg/dL"]

    response = client.post(
        "/api/analyze",
        files=[
            _pdf("glucose.pdf", b"%PDF glucose"),
            _pdf("lipids.pdf", b"%PDF lipids"),
        ],
    )
    assert response.status_code == 200
    results = response.json()["results"]
    assert [result["fileName"] for result in results] == ["glucose.pdf", "lipids.pdf"]

    glucose = results[0]
    assert glucose["testDate"] == "2024-01-10T00:00:00.000Z"
    assert glucose["dateInferred"] is False
    assert glucose["biomarkers"]["Glucose"] == {
        "value": 85.0,
        "unit": "mg/dL",
        "referenceRange": {"min": 70.0, "max": 100.0},
        "orderIndex": 0,
    }
    assert "error" not in glucose

    lipids = results[1]
    assert lipids["originalOrder"] == ["Cholesterol", "HDL"]
    assert lipids["biomarkers"]["Cholesterol"]["referenceRange"] == {"min": 125.0, "max": 200.0}
    assert lipids["biomarkers"]["HDL"]["referenceRange"] == {"min": 40.0, "max": 60.0}
    assert lipids["dateInferred"] is True


def test_failed_file_does_not_affect_others(client, fake_pdf_pages):
    fake_pdf_pages[b"%PDF good"] = ["Glucose: 85 mg/dL"]

    response = client.post(
        "/api/analyze",
        files=[
            _pdf("corrupt.pdf", b"%PDF corrupt"),
            ("reports", ("notes.txt", b"Glucose: 85", "text/plain")),
            _pdf("good.pdf", b"%PDF good"),
        ],
    )
    assert response.status_code == 200
    results = response.json()["results"]
    assert results[0]["error"] == "Failed to parse PDF"
    assert results[0]["biomarkers"] == {}
    assert results[0]["originalOrder"] == []
    assert "testDate" in results[0]
    assert results[1]["error"] == "Please upload a PDF file"
    assert results[2]["biomarkers"]["Glucose"]["value"] == 85.0


def test_analyze_without_files_is_bad_request(client):
    response = client.post("/api/analyze")
    assert response.status_code == 400
    payload = response.json()
    assert payload["statusCode"] == 400
    assert payload["message"] == "No files provided"
    assert payload["error"] == "BadRequest"


def test_unexpected_failure_uses_error_envelope(client, fake_pdf_pages, monkeypatch):
    async def broken_analyze_reports(uploads):
        raise RuntimeError("boom")

    monkeypatch.setattr("backend.routers.analyze.analyze_reports", broken_analyze_reports)
    response = client.post("/api/analyze", files=[_pdf("a.pdf", b"%PDF a")])
    assert response.status_code == 500
    assert response.json() == {
        "statusCode": 500,
        "message": "Failed to process request",
        "error": "InternalServerError",
    }


def test_analyze_skips_history_when_disabled(client, fake_pdf_pages, monkeypatch):
    monkeypatch.setattr(settings, "persist_history", False)
    fake_pdf_pages[b"%PDF glucose"] = ["Glucose: 85 mg/dL"]

    response = client.post("/api/analyze", files=[_pdf("glucose.pdf", b"%PDF glucose")])
    assert response.status_code == 200
    assert client.get("/api/history").json() == []
