"""End-to-end tests for the storm-impact CLI."""

import os

import docx
import pytest

from storm_impact.cli import build_parser, main


def test_defaults():
    """A bare run uses the published file name and the top 10."""
    args = build_parser().parse_args([])
    assert args.csv == "repdata_data_StormData.csv.bz2"
    assert args.top == 10
    assert args.exponents == "standard"
    assert args.docx is None


@pytest.mark.parametrize("argv", [["--top", "0"], ["--exponents", "loose"], ["--dpi", "-1"]])
def test_rejects_bad_flags(argv):
    with pytest.raises(SystemExit):
        build_parser().parse_args(argv)


def test_full_run(storm_csv, tmp_path, capsys):
    out_dir = tmp_path / "figures"
    code = main(["--csv", storm_csv, "--out", str(out_dir), "--top", "3", "--dpi", "50"])
    assert code == 0
    assert (out_dir / "health_impact.png").exists()
    assert (out_dir / "economic_impact.png").exists()
    out = capsys.readouterr().out
    assert "Top 3 event types by injuries" in out
    assert f"Saved: {os.path.join(str(out_dir), 'economic_impact.png')}" in out


def test_year_filter_and_docx(storm_csv, tmp_path, capsys):
    report = tmp_path / "report.docx"
    code = main([
        "--csv", storm_csv, "--out", str(tmp_path), "--since", "2000",
        "--exponents", "extended", "--docx", str(report), "--dpi", "50",
    ])
    assert code == 0
    assert report.exists()
    text = "\n".join(p.text for p in docx.Document(str(report)).paragraphs)
    assert "Year filter: 2000 to end" in text
    out = capsys.readouterr().out
    assert "Rows in scope:      4" in out
    assert "Years:              2000 to 2011" in out
    # TORNADO rows are all before 2000
    assert "TORNADO" not in out


def test_missing_file_reports_error(tmp_path, capsys):
    code = main(["--csv", str(tmp_path / "missing.csv.bz2"), "--out", str(tmp_path)])
    assert code == 1
    assert "Error:" in capsys.readouterr().err


def test_empty_year_range_reports_error(storm_csv, tmp_path, capsys):
    code = main(["--csv", storm_csv, "--out", str(tmp_path), "--since", "2030"])
    assert code == 1
    assert "No events" in capsys.readouterr().err


def test_missing_column_reports_error(tmp_path, raw_frame, capsys):
    path = tmp_path / "storm.csv"
    raw_frame.drop(columns=["EVTYPE"]).to_csv(path, index=False)
    code = main(["--csv", str(path), "--out", str(tmp_path)])
    assert code == 1
    assert "Missing required column" in capsys.readouterr().err


def test_unwritable_output_reports_error(storm_csv, tmp_path, capsys):
    """A chart directory that cannot be created is an error message, not a traceback."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    code = main(["--csv", storm_csv, "--out", str(blocker / "sub"), "--dpi", "50"])
    assert code == 1
    assert "Error:" in capsys.readouterr().err
