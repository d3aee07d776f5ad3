import numpy as np
import pytest

from pangrowth.core.exceptions import ValidationError
from pangrowth.core.types import CountType, HeapsFit, Hist
from pangrowth.modules.output import growth_table, load_hists, write_growth_table
from pangrowth.pipeline import GrowthAnalysis


def test_load_hists(hist_file, power_law_levels):
    hists, n_paths, comments = load_hists(hist_file)

    assert n_paths == 40
    assert comments == []
    assert set(hists) == {CountType.NODE, CountType.EDGE}
    np.testing.assert_array_equal(hists[CountType.NODE].histogram(), power_law_levels)


def test_load_hists_keeps_comments(tmp_path):
    path = tmp_path / "hist.tsv"
    path.write_text("# built from graph.gfa\ncoverage\tnode\n0\t0\n1\t2\n2\t1\n")

    hists, n_paths, comments = load_hists(path)

    assert comments == ["# built from graph.gfa"]
    assert n_paths == 2
    np.testing.assert_array_equal(hists[CountType.NODE].coverage, [1, 1, 2])


@pytest.mark.parametrize("content", [
    "level\tnode\n0\t0\n1\t2\n",
    "coverage\tgenes\n0\t0\n1\t2\n",
    "coverage\n0\n1\n",
    "coverage\tnode\n0\t0\n2\t2\n",
    "coverage\tnode\n0\t0\n1\t-1\n",
])
def test_load_hists_rejects_malformed_files(tmp_path, content):
    path = tmp_path / "hist.tsv"
    path.write_text(content)

    with pytest.raises(ValidationError):
        load_hists(path)


def test_load_hists_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_hists(tmp_path / "missing.tsv")


def test_growth_table_layout(small_hist):
    analysis = GrowthAnalysis([small_hist], coverage="1,2", quorum="0", add_alpha=False,
                              max_workers=1)
    table = growth_table(analysis.results(), hists=[small_hist])

    assert list(table.index) == [0, 1, 2, 3, 4, 5]
    assert list(table.columns.names) == ["kind", "count", "coverage", "quorum"]
    assert list(table.columns) == [
        ("hist", "node", "", ""),
        ("growth", "node", "1", "0"),
        ("growth", "node", "2", "0"),
    ]
    assert table[("hist", "node", "", "")].tolist() == [0.0, 1.0, 0.0, 2.0, 0.0, 2.0]
    growth = table[("growth", "node", "1", "0")]
    assert np.isnan(growth.loc[0])
    assert growth.loc[1] == pytest.approx(3.4)
    assert growth.loc[5] == pytest.approx(5.0)


def test_growth_table_keeps_uncovered_items():
    hist = Hist.from_histogram(CountType.NODE, [7, 1, 2])
    analysis = GrowthAnalysis([hist], add_alpha=False, max_workers=1)
    table = growth_table(analysis.results(), hists=[hist])

    assert table[("hist", "node", "", "")].tolist() == [7.0, 1.0, 2.0]
    assert int(table[("hist", "node", "", "")].sum()) == len(hist)


def test_write_growth_table(tmp_path, small_hist):
    analysis = GrowthAnalysis([small_hist], add_alpha=False, max_workers=1)
    results = analysis.results()
    fitted = [
        type(r)(r.count_type, r.coverage, r.quorum, r.curves, HeapsFit(0.42, 1.0, None))
        for r in results
    ]

    path = write_growth_table(tmp_path / "out" / "growth.tsv", fitted,
                              comments=["# graph.gfa"], command="pangrowth hist.tsv -l 1")
    lines = path.read_text().splitlines()

    assert lines[0] == "# graph.gfa"
    assert lines[1] == "# pangrowth hist.tsv -l 1"
    assert lines[2] == "# alpha (node): 0.42"

    assert lines[3] == "kind\tgrowth"
    assert lines[4] == "count\tnode"
    first = [line for line in lines if line.startswith("0\t")]
    assert first == ["0\t"]
    last = lines[-1].split("\t")
    assert last[0] == "5"
    assert float(last[1]) == pytest.approx(5.0)
