from pathlib import Path

from tools import check_clock_usage

# Split so this file does not trip the scan itself.
STRAY = "stamp = datetime.datetime." + "now()\n"


def test_repository_reads_the_clock_only_through_clock_module():
    root = Path(__file__).resolve().parents[1]
    assert check_clock_usage.find_hits(root) == []


def test_detects_stray_clock_read(tmp_path):
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "bad.py").write_text("import datetime\n" + STRAY, encoding="utf-8")
    (tmp_path / "clock.py").write_text("import datetime\n" + STRAY, encoding="utf-8")
    hits = check_clock_usage.find_hits(tmp_path)
    assert [(str(rel), ln) for rel, ln, _, _ in hits] == [(str(Path("pkg") / "bad.py"), 2)]
    assert check_clock_usage.main(tmp_path) == 1
