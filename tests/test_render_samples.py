from __future__ import annotations

from chart_plotter import render_samples


def test_renders_every_sample_chart(tmp_path):
    code = render_samples.main(["--out", str(tmp_path), "--width", "320", "--height", "240"])
    assert code == 0
    pngs = sorted(p.name for p in tmp_path.glob("*.png"))
    assert "sine_cosine.png" in pngs
    assert "rose.png" in pngs
    assert len(pngs) == 6


def test_bad_source_fails_the_run(tmp_path):
    src = tmp_path / "in"
    src.mkdir()
    (src / "broken.chart").write_text("begin-axis plot{sin(x) end-axis", encoding="utf-8")
    (src / "ok.chart").write_text("begin-axis plot{x} end-axis", encoding="utf-8")
    code = render_samples.main(["--in", str(src), "--out", str(tmp_path / "out")])
    assert code == 1
    assert (tmp_path / "out" / "ok.png").exists()
