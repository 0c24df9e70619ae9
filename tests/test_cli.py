from __future__ import annotations

import json

import pytest
import soundfile as sf

from abscope.cli.main import (
    EXIT_CONFIG_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_OK,
    build_parser,
    main,
)
from conftest import sine

FS = 44100


@pytest.fixture()
def pair(tmp_path):
    a = tmp_path / "a.wav"
    b = tmp_path / "b.wav"
    sf.write(a, sine(1000.0, 3.0, FS, amp=0.25), FS)
    sf.write(b, sine(1000.0, 3.0, FS, amp=0.5), FS)
    return str(a), str(b)


def _exit_code(argv) -> int:
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_compare_writes_report(pair, tmp_path, capsys):
    out = tmp_path / "report.json"
    assert _exit_code(["compare", pair[0], pair[1], "--out", str(out), "--spectra"]) == EXIT_OK
    report = json.loads(out.read_text(encoding="utf-8"))
    assert report["engine"]["name"] == "abscope"
    assert report["loudness"]["integrated_delta_lu"] == pytest.approx(6.02, abs=0.02)
    assert len(report["inputs"]) == 2
    assert "spectra" in report
    assert len(report["integrity"]["report_hash_sha256"]) == 64
    assert "Report written to" in capsys.readouterr().err


def test_compare_with_range_prints_json(pair, capsys):
    assert _exit_code(["compare", pair[0], pair[1], "--start", "1", "--end", "2"]) == EXIT_OK
    report = json.loads(capsys.readouterr().out)
    assert report["time_range_s"] == {"start": 1.0, "end": 2.0}
    assert report["range"]["integrated_delta_lu"] == pytest.approx(6.02, abs=0.02)


def test_loudness_text_and_json(pair, capsys):
    assert _exit_code(["loudness", pair[1], "--start", "0.5", "--end", "2.5"]) == EXIT_OK
    text = capsys.readouterr().out
    assert "Integrated:" in text
    assert "LUFS" in text
    assert "Range 0:00-0:02" in text

    assert _exit_code(["loudness", pair[1], "--json"]) == EXIT_OK
    summary = json.loads(capsys.readouterr().out)
    assert summary["integrated_lufs"] == pytest.approx(-9.03, abs=0.1)


def test_spectrum_csv(pair, tmp_path):
    out = tmp_path / "spectrum.csv"
    assert _exit_code(["spectrum", pair[0], pair[1], "--csv", str(out)]) == EXIT_OK
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "freq_hz,a_db,b_db,delta_db"
    first_freq = float(lines[1].split(",")[0])
    assert first_freq >= 50.0
    peak = max(lines[1:], key=lambda row: float(row.split(",")[1]))
    assert float(peak.split(",")[3]) == pytest.approx(6.02, abs=0.05)


def test_missing_input_is_decode_error(pair, tmp_path, capsys):
    code = _exit_code(["compare", pair[0], str(tmp_path / "nope.wav")])
    assert code == EXIT_DECODE_ERROR
    assert "Could not decode" in capsys.readouterr().err


def test_bad_config_is_config_error(pair, tmp_path, capsys):
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({"loudness": {"unknown": 1}}), encoding="utf-8")
    assert _exit_code(["loudness", pair[0], "--config", str(cfg)]) == EXIT_CONFIG_ERROR
    cfg.write_text("{not json", encoding="utf-8")
    assert _exit_code(["loudness", pair[0], "-c", str(cfg)]) == EXIT_CONFIG_ERROR
    assert "Invalid config JSON" in capsys.readouterr().err


def test_inverted_range_is_rejected(pair):
    assert _exit_code(["compare", pair[0], pair[1], "--start", "2", "--end", "1"]) == EXIT_CONFIG_ERROR


def test_compare_uses_spectrum_config(pair, tmp_path, capsys):
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps({"spectrum": {"diff_sensitivity": 0.5, "min_freq": 200}}),
                   encoding="utf-8")
    assert _exit_code(["compare", pair[0], pair[1], "-c", str(cfg), "--spectra"]) == EXIT_OK
    report = json.loads(capsys.readouterr().out)
    assert report["spectrogram"]["diff"]["sensitivity"] == 0.5
    assert min(report["spectra"]["freqs_hz"]) >= 200.0
