import json
import os
import sys
from unittest.mock import patch

sys.path.insert(0, os.path.abspath("src"))

from pantry_receipts.cli import main as cli
from pantry_receipts.config import VisionConfig


def test_parse_prints_receipt_json(tmp_path, capsys):
    source = tmp_path / "receipt.txt"
    source.write_text("LIDL NICOSIA\nDate: 15/03/2024\n1,230 kg X 2,50 €/kg = 3,08 €\nTOTAL: 3.08\n", encoding="utf-8")

    code = cli.main(["parse", "--source", str(source), "--location-id", "1", "--user-id", "2"])

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["header"]["store"] == "LIDL NICOSIA"
    assert out["footer"]["totalAmount"] == 3.08
    assert "rawText" not in out
    assert out["foodItems"][0]["isWeightBased"] is True


def test_parse_reports_missing_file_and_empty_text(tmp_path, capsys):
    assert cli.main(["parse", "--source", str(tmp_path / "missing.txt")]) == 2

    empty = tmp_path / "empty.txt"
    empty.write_text("", encoding="utf-8")
    assert cli.main(["parse", "--source", str(empty)]) == 1


def test_vision_without_api_key_exits_with_config_error(tmp_path):
    image = tmp_path / "r.jpg"
    image.write_bytes(b"jpeg")
    config = VisionConfig(backend="openai", model="gpt-4o", api_key=None)
    with patch.object(cli, "load_vision_config", return_value=config):
        assert cli.main(["vision", "--source", str(image)]) == 2
