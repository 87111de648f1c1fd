"""
Tests for the command line entry point.
"""

import json
import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from main import main


@pytest.fixture
def catalog_csv(tmp_path):
    path = tmp_path / "mydata.csv"
    path.write_text(
        "자재명,재질,상세규격,품번\nHEX BOLT,A2,M8X20,B-100\nNUT,SUS304,M8,N-008\n",
        encoding="utf-8-sig"
    )
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("PARTS_CATALOG_PATH", raising=False)
    monkeypatch.delenv("PARTS_MATCH_THRESHOLD", raising=False)


class TestMain:

    def test_show_graph(self, capsys):
        assert main(["--show-graph"]) == 0
        assert "Parts Matching Workflow" in capsys.readouterr().out

    def test_missing_input(self, tmp_path, catalog_csv):
        assert main([str(tmp_path / "missing"), str(tmp_path / "out"), "-c", str(catalog_csv)]) == 1

    def test_missing_catalog(self, tmp_path):
        text = tmp_path / "table.txt"
        text.write_text("NUT SUS304 4EA M8\n", encoding="utf-8")
        assert main([str(text), str(tmp_path / "out"), "-c", str(tmp_path / "nope.xlsx")]) == 1

    def test_threshold_out_of_range(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["in", "out", "--threshold", "1.5"])

    def test_run_on_text_file(self, tmp_path, catalog_csv):
        text = tmp_path / "table.txt"
        text.write_text("명칭 재료 수량 규격\nNUT SUS304 4EA M8\n", encoding="utf-8")
        out = tmp_path / "out"

        assert main([str(text), str(out), "-c", str(catalog_csv), "--no-checkpoints"]) == 0

        report = json.loads((out / "table_match.json").read_text(encoding="utf-8"))
        assert report["matched"][0]["part_number"] == "N-008"
        assert report["matched"][0]["sheet_name"] == "mydata"
        assert (out / "batch_summary.json").exists()

    @pytest.mark.parametrize("body", [
        "ocr:\n  dpi: 300\n",
        "match_threshold: [0.4\n",
    ])
    def test_bad_config_exits_cleanly(self, tmp_path, catalog_csv, body):
        text = tmp_path / "table.txt"
        text.write_text("NUT SUS304 4EA M8\n", encoding="utf-8")
        cfg = tmp_path / "cfg.yaml"
        cfg.write_text(body, encoding="utf-8")

        assert main([str(text), str(tmp_path / "out"), "-c", str(catalog_csv), "--config", str(cfg)]) == 1
        assert not (tmp_path / "out").exists()
