"""
tests/test_cli_and_reader.py
SoF document reader and the CLI entry point.
"""
import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

import main
from extraction.extractor import SofExtractor
from ingestion.document_reader import SofDocumentReader

SOF_TEXT = """STATEMENT OF FACTS
Vessel: MV OCEAN STAR      Port: Santos
01.05.2024 08:00    Pilot on board
01.05.2024 10:00    Commenced loading
"""


class TestSofDocumentReader:

    def test_reads_text_file(self, tmp_path):
        path = tmp_path / "sof.txt"
        path.write_text(SOF_TEXT)
        doc = SofDocumentReader().read(path)
        assert doc.total_pages == 1
        assert "MV OCEAN STAR Port: Santos" in doc.full_text
        assert doc.metadata["filename"] == "sof.txt"

    def test_reads_pdf(self, tmp_path):
        fitz = pytest.importorskip("fitz")
        path = tmp_path / "sof.pdf"
        pdf = fitz.open()
        pdf.new_page().insert_text((72, 72), "Vessel: MV OCEAN STAR")
        pdf.new_page().insert_text((72, 72), "Commenced loading")
        pdf.save(str(path))
        pdf.close()

        doc = SofDocumentReader().read(path)
        assert doc.total_pages == 2
        assert "MV OCEAN STAR" in doc.pages[0]
        assert "Commenced loading" in doc.full_text

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SofDocumentReader().read(tmp_path / "nope.txt")

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "sof.xlsx"
        path.write_bytes(b"PK")
        with pytest.raises(ValueError):
            SofDocumentReader().read(path)


class TestCli:

    def test_demo_runs(self, capsys):
        assert main.main(["demo"]) == 0
        out = capsys.readouterr().out
        assert "Timeline Blocks" in out
        assert "Laytime used" in out

    def test_extract_json(self, tmp_path, monkeypatch, capsys):
        import extraction.pipeline as pipeline_module

        chain = MagicMock()
        chain.invoke.return_value = {
            "vesselName": "MV OCEAN STAR",
            "events": [{"event": "Pilot on board", "category": "Arrival", "startTime": "2024-05-01 08:00"}],
        }
        real_pipeline = pipeline_module.SofPipeline
        monkeypatch.setattr(
            pipeline_module, "SofPipeline",
            lambda: real_pipeline(extractor=SofExtractor(chain=chain)),
        )
        path = tmp_path / "sof.txt"
        path.write_text(SOF_TEXT)

        assert main.main(["extract", "--file", str(path), "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["result"]["vesselName"] == "MV OCEAN STAR"
        assert payload["result"]["timelineBlocks"][0]["name"] == "Pilot on board"
        assert payload["guardrailReport"]["passed"] is True

    def test_extract_model_failure_exit_code(self, tmp_path, monkeypatch):
        import extraction.pipeline as pipeline_module

        chain = MagicMock()
        chain.invoke.return_value = {"error": "Unable to extract vessel name and events"}
        real_pipeline = pipeline_module.SofPipeline
        monkeypatch.setattr(
            pipeline_module, "SofPipeline",
            lambda: real_pipeline(extractor=SofExtractor(chain=chain)),
        )
        path = tmp_path / "sof.txt"
        path.write_text(SOF_TEXT)
        assert main.main(["extract", "--file", str(path)]) == 2

    def test_extract_missing_file_exit_code(self, tmp_path, capsys):
        assert main.main(["extract", "--file", str(tmp_path / "nope.pdf")]) == 2
        assert "not found" in capsys.readouterr().err

    def test_extract_unsupported_type_exit_code(self, tmp_path, capsys):
        path = tmp_path / "sof.xlsx"
        path.write_bytes(b"PK")
        assert main.main(["extract", "--file", str(path)]) == 2
        assert "Unsupported SoF file type" in capsys.readouterr().err
